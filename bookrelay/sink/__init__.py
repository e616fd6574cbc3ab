"""
audit sinks, where the latency report of every message ends up
"""

from .sink import AuditEntry as AuditEntry
from .sink import AuditRecord as AuditRecord
from .sink import AuditStatus as AuditStatus
from .sink import IAuditSink as IAuditSink
from .sink import InMemoryAuditSink as InMemoryAuditSink
from .sink import QueueAuditSink as QueueAuditSink
from .sink import audit_entry as audit_entry
from .sink import log_envelope as log_envelope
