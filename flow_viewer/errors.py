"""Exceptions raised inside the flow viewer."""


class FlowViewerError(Exception):
    """Base class for flow viewer errors."""


class MalformedMessage(FlowViewerError):
    """Inbound payload could not be decoded or lacks a required field."""
