"""Caller model: one flattened, latest-state-wins row per phone number."""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime
from call_intake.core.database import Base

NOT_AVAILABLE = "N/A"
UNKNOWN = "Unknown"
UNCERTAIN = "Uncertain"  # lead-status error sentinel, deliberately not a LeadStatus

SENTINELS = frozenset({NOT_AVAILABLE, UNKNOWN, UNCERTAIN})


class CallStatus(str, enum.Enum):
    CONNECTED_IB = "Connected-IB"
    CONNECTED_OB = "Connected-OB"
    NO_ANSWER = "No Answer"
    SWITCHED_OFF = "Switched off"
    OUT_OF_SERVICE = "Out of service"
    NOT_REACHABLE = "Not reachable"
    DISCONNECTED_BY_CUSTOMER = "Call disconnected by customer"
    BUSY = "Busy"
    VISITED_CENTER = "Visited Center"


class LeadStatus(str, enum.Enum):
    INTERESTED = "Interested"
    NOT_INTERESTED = "Not Interested"
    INTERESTED_IN_FUTURE = "Interested In Future"
    CALL_BACK = "Call Back"
    CALL_BACK_IN_EVENING = "Call Back In Evening"
    DISCONNECTED_BY_CUSTOMER = "Call Disconnected By Customer"
    BOOKED = "Booked"
    ENQUIRY_FOR_TOOLS = "Enquiry For Tools"
    ENQUIRY_FOR_JOB = "Enquiry For Job"
    ENQUIRY_FOR_FRANCHISE = "Enquiry For Franchise"
    BUSY = "Busy"
    APPLICANT_NOT_AVAILABLE = "Applicant Not Available"


class UserType(str, enum.Enum):
    STUDENT = "Student"
    GUARDIAN = "Guardian"
    EMPLOYEE = "Employee"
    GARAGE_OWNER = "Garage Owner"
    UNEMPLOYED = "Unemployed"
    OTHER = "Other"


CALL_STATUS_VALUES = [s.value for s in CallStatus]
LEAD_STATUS_VALUES = [s.value for s in LeadStatus]
USER_TYPE_VALUES = [t.value for t in UserType]


class Caller(Base):
    """Persisted caller record.

    Status columns are plain strings rather than DB enums: the oracle may
    return off-list values (and the Uncertain sentinel) which are stored
    as-is and only logged. Everything except contact_num is unbounded
    Text, so no oracle or transcript value can fail the write on length.
    """
    __tablename__ = "callers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contact_num = Column(String(64), unique=True, index=True, nullable=False)

    # Profile (rule-based extraction)
    contact_name = Column(Text, nullable=False, default=UNKNOWN)
    course = Column(Text, nullable=False, default=UNKNOWN)
    user_type = Column(Text, nullable=False, default=UNKNOWN)
    city = Column(Text, nullable=False, default=UNKNOWN)
    state = Column(Text, nullable=False, default=UNKNOWN)

    # Latest call analysis
    call_status = Column(Text, nullable=True)
    lead_status = Column(Text, nullable=True)
    contact_status = Column(Text, nullable=True)
    contact_followupdate = Column(Text, nullable=False, default=NOT_AVAILABLE)
    contact_followuptime = Column(Text, nullable=False, default=NOT_AVAILABLE)
    remark = Column(Text, nullable=True)
    last_call_summary = Column(Text, nullable=True)
    last_transcript = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
