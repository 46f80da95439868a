"""Database models for SPAC OS."""
from spacos.models.organization import Organization, OrganizationType
from spacos.models.spac import Spac, SpacStatus, SpacPhase
from spacos.models.target import Target, TargetStatus, DealStage, TargetContact, ScoreHistory
from spacos.models.company import Company, CompanyDeal
from spacos.models.contact import (
    Contact,
    ContactType,
    ContactStatus,
    RelationshipStrength,
    Interaction,
    InteractionType,
)
from spacos.models.filing import Filing, FilingType, FilingStatus, SecComment
from spacos.models.task import Task, TaskStatus, TaskPriority
from spacos.models.alert import ComplianceAlert, ComplianceAlertType, AlertSeverity
from spacos.models.financial import CapTableEntry, HolderType, TrustAccount
from spacos.models.mandate import Mandate, MandateStatus, ServiceType, mandate_contacts
from spacos.models.ownership import OwnershipStake, StakeType, ExitStatus
from spacos.models.email import Email, EmailDirection
from spacos.models.meeting import Meeting, MeetingAttendee, AttendeeStatus
from spacos.models.compliance import (
    ComplianceItem,
    ComplianceStatus,
    BoardMeeting,
    BoardMeetingStatus,
    Conflict,
    ConflictSeverity,
    InsiderTradingWindow,
    TradingWindowStatus,
)
from spacos.models.note import Note

__all__ = [
    "Organization",
    "OrganizationType",
    "Spac",
    "SpacStatus",
    "SpacPhase",
    "Target",
    "TargetStatus",
    "DealStage",
    "TargetContact",
    "ScoreHistory",
    "Company",
    "CompanyDeal",
    "Contact",
    "ContactType",
    "ContactStatus",
    "RelationshipStrength",
    "Interaction",
    "InteractionType",
    "Filing",
    "FilingType",
    "FilingStatus",
    "SecComment",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "ComplianceAlert",
    "ComplianceAlertType",
    "AlertSeverity",
    "CapTableEntry",
    "HolderType",
    "TrustAccount",
    "Mandate",
    "MandateStatus",
    "ServiceType",
    "mandate_contacts",
    "OwnershipStake",
    "StakeType",
    "ExitStatus",
    "Email",
    "EmailDirection",
    "Meeting",
    "MeetingAttendee",
    "AttendeeStatus",
    "ComplianceItem",
    "ComplianceStatus",
    "BoardMeeting",
    "BoardMeetingStatus",
    "Conflict",
    "ConflictSeverity",
    "InsiderTradingWindow",
    "TradingWindowStatus",
    "Note",
]
