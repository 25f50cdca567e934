"""Session, gate and acquisition machinery behind :class:`ofs_plugin.OFSPlugin`."""

from .gate import ProxyGate
from .outbound import Outbound
from .proxy_flow import (
    APPLICATIONS_PROPERTY,
    BASE_URL_PROPERTY,
    ENVIRONMENT_PROPERTY,
    AcquisitionPath,
    ProxyAcquisitionFlow,
)
from .session import SessionState

__all__ = [
    "APPLICATIONS_PROPERTY",
    "BASE_URL_PROPERTY",
    "ENVIRONMENT_PROPERTY",
    "AcquisitionPath",
    "Outbound",
    "ProxyAcquisitionFlow",
    "ProxyGate",
    "SessionState",
]
