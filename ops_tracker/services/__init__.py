"""Business logic services for Ops Tracker."""

from .audit import AuditService
from .cache import TTLCache
from .conversations import AddMessageInput, ConversationService
from .errors import (
    ConcurrencyError,
    GateValidationError,
    InvalidOperationError,
    NotFoundError,
    TrackerError,
    WorkItemNotFoundError,
)
from .inbox import AwaitingReply, InboundMessage, Inbox, InboxService
from .metrics import CycleTimeReport, DashboardStats, MetricsService
from .qc_checks import QCChecklist, QCCheckService, QCStats
from .subtasks import SubtaskService, UpdateSubtaskInput
from .templates import CreateTemplateInput, TemplateService
from .users import UserService
from .work_items import (
    CreateWorkItemInput,
    WorkItemDetail,
    WorkItemFilters,
    WorkItemService,
)
from .workflow_engine import (
    PATCHABLE_FIELDS,
    TransitionInput,
    TransitionResult,
    WorkflowEngine,
)

__all__ = [
    # Workflow Engine (primary)
    "WorkflowEngine",
    "TransitionInput",
    "TransitionResult",
    "PATCHABLE_FIELDS",
    # Errors
    "TrackerError",
    "NotFoundError",
    "WorkItemNotFoundError",
    "GateValidationError",
    "InvalidOperationError",
    "ConcurrencyError",
    # Supporting services
    "AuditService",
    "WorkItemService",
    "CreateWorkItemInput",
    "WorkItemFilters",
    "WorkItemDetail",
    "SubtaskService",
    "UpdateSubtaskInput",
    "QCCheckService",
    "QCChecklist",
    "QCStats",
    "ConversationService",
    "AddMessageInput",
    "TemplateService",
    "CreateTemplateInput",
    "UserService",
    "InboxService",
    "Inbox",
    "AwaitingReply",
    "InboundMessage",
    "MetricsService",
    "DashboardStats",
    "CycleTimeReport",
    # Caching
    "TTLCache",
]
