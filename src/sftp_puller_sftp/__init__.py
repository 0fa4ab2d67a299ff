"""SFTP Puller SFTP Package.

This package contains the transfer session, its supervisor and the per-file
transfer sequence.
"""

from .sequencer import TransferSequencer
from .supervisor import ConnectionSupervisor, SessionState
from .transport import ParamikoTransport, RemoteFileEntry, SessionOptions, SftpTransport

__all__ = [
    "ConnectionSupervisor",
    "ParamikoTransport",
    "RemoteFileEntry",
    "SessionOptions",
    "SessionState",
    "SftpTransport",
    "TransferSequencer",
]
