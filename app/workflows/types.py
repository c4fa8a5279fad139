"""Records exchanged between the gateway, the case workflow and its activities.

Everything here is a plain dataclass so the runtime's default JSON converter
can carry it across workflow, activity and query boundaries. Timestamps are
ISO-8601 strings in UTC.
"""
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from app.utils.validators import validate_email, validate_required_fields

# Search kinds
SSN_TRACE = 'ssn_trace'
CRIMINAL = 'criminal'
EMPLOYMENT = 'employment'
EDUCATION = 'education'
MOTOR_VEHICLE = 'motor_vehicle'

SEARCH_KINDS = (SSN_TRACE, CRIMINAL, EMPLOYMENT, EDUCATION, MOTOR_VEHICLE)

CONSENT = 'consent'

TIER_STANDARD = 'standard'
TIER_FULL = 'full'
TIERS = (TIER_STANDARD, TIER_FULL)


class CaseState:
    PENDING_CONSENT = 'pending_consent'
    RUNNING = 'running'
    COMPLETED = 'completed'
    DECLINED = 'declined'
    CANCELLED = 'cancelled'
    FAILED = 'failed'


class SearchState:
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


CRIMINAL_SEVERITIES = ('felony', 'misdemeanor', 'infraction')


def _field(data: Dict, name: str, kind, required: bool = True, default=None):
    """Fetch and type-check one field of a decoded JSON object"""
    if name not in data or data[name] is None:
        if required:
            raise ValueError(f"{name} is required")
        return default
    value = data[name]
    # bool is an int subclass; never accept one for the other
    if kind is not bool and isinstance(value, bool):
        raise ValueError(f"{name} must be {kind.__name__}")
    if not isinstance(value, kind):
        raise ValueError(f"{name} must be {kind.__name__}")
    return value


def _string_list(data: Dict, name: str) -> List[str]:
    values = _field(data, name, list, required=False, default=[])
    if not all(isinstance(v, str) for v in values):
        raise ValueError(f"{name} must be a list of strings")
    return list(values)


def _require_object(data: Any) -> Dict:
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


def _reject_unknown(data: Dict, cls) -> None:
    unknown = set(data) - {f.name for f in fields(cls)}
    if unknown:
        raise ValueError(f"Unexpected fields for {cls.__name__}: {', '.join(sorted(unknown))}")


@dataclass
class BackgroundCheckInput:
    email: str
    tier: str
    package: str

    @classmethod
    def from_dict(cls, data: Any) -> 'BackgroundCheckInput':
        data = _require_object(data)
        present, error = validate_required_fields(data, ('email', 'tier', 'package'))
        if not present:
            raise ValueError(error)
        email = _field(data, 'email', str)
        valid, error = validate_email(email)
        if not valid:
            raise ValueError(error)
        tier = _field(data, 'tier', str)
        if tier not in TIERS:
            raise ValueError(f"tier must be one of {', '.join(TIERS)}")
        package = _field(data, 'package', str)
        if not package:
            raise ValueError("package is required")
        return cls(email=email, tier=tier, package=package)


@dataclass
class CaseSettings:
    """Deadlines and retry limits for one case, fixed when the case starts"""
    consent_timeout_seconds: float = 7 * 24 * 3600
    search_timeout_seconds: float = 30 * 24 * 3600
    max_attempts: int = 5
    initial_retry_seconds: float = 1.0
    max_retry_seconds: float = 300.0


@dataclass
class ConsentResult:
    consent: bool

    @classmethod
    def from_dict(cls, data: Any) -> 'ConsentResult':
        data = _require_object(data)
        return cls(consent=_field(data, 'consent', bool))


@dataclass
class SSNTraceResult:
    ssn_is_valid: bool
    known_addresses: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'SSNTraceResult':
        _reject_unknown(data, cls)
        return cls(
            ssn_is_valid=_field(data, 'ssn_is_valid', bool),
            known_addresses=_string_list(data, 'known_addresses')
        )


@dataclass
class CriminalRecord:
    offense: str
    severity: str
    jurisdiction: str = ''
    date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'CriminalRecord':
        data = _require_object(data)
        _reject_unknown(data, cls)
        severity = _field(data, 'severity', str)
        if severity not in CRIMINAL_SEVERITIES:
            raise ValueError(f"severity must be one of {', '.join(CRIMINAL_SEVERITIES)}")
        return cls(
            offense=_field(data, 'offense', str),
            severity=severity,
            jurisdiction=_field(data, 'jurisdiction', str, required=False, default=''),
            date=_field(data, 'date', str, required=False)
        )


@dataclass
class CriminalSearchResult:
    records: List[CriminalRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'CriminalSearchResult':
        _reject_unknown(data, cls)
        records = _field(data, 'records', list, required=False, default=[])
        return cls(records=[CriminalRecord.from_dict(r) for r in records])


@dataclass
class EmploymentVerificationResult:
    employer_verified: bool
    employer: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'EmploymentVerificationResult':
        _reject_unknown(data, cls)
        return cls(
            employer_verified=_field(data, 'employer_verified', bool),
            employer=_field(data, 'employer', str, required=False),
            reason=_field(data, 'reason', str, required=False)
        )


@dataclass
class EducationVerificationResult:
    degree_verified: bool
    institution: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'EducationVerificationResult':
        _reject_unknown(data, cls)
        return cls(
            degree_verified=_field(data, 'degree_verified', bool),
            institution=_field(data, 'institution', str, required=False),
            reason=_field(data, 'reason', str, required=False)
        )


@dataclass
class MotorVehicleResult:
    license_valid: bool
    violations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'MotorVehicleResult':
        _reject_unknown(data, cls)
        return cls(
            license_valid=_field(data, 'license_valid', bool),
            violations=_string_list(data, 'violations')
        )


SEARCH_RESULT_TYPES = {
    SSN_TRACE: SSNTraceResult,
    CRIMINAL: CriminalSearchResult,
    EMPLOYMENT: EmploymentVerificationResult,
    EDUCATION: EducationVerificationResult,
    MOTOR_VEHICLE: MotorVehicleResult,
}


def parse_search_payload(kind: str, data: Any):
    """Decode the concrete payload of a search of the given kind.

    A ``kind`` tag, when present, must name the same search.
    """
    if kind not in SEARCH_RESULT_TYPES:
        raise ValueError(f"Unknown search kind: {kind}")
    data = _require_object(data)
    tagged = data.get('kind')
    if tagged is not None and tagged != kind:
        raise ValueError(f"Expected a {kind} result, got {tagged}")
    payload = {k: v for k, v in data.items() if k != 'kind'}
    return SEARCH_RESULT_TYPES[kind].from_dict(payload)


def search_result_payload(data: Any):
    """Project a tagged search result (``{"kind": ..., ...}``) onto its payload"""
    data = _require_object(data)
    kind = _field(data, 'kind', str)
    return parse_search_payload(kind, data)


def tagged_search_result(payload) -> Dict:
    """Payload plus its ``kind`` tag, as handed to the case workflow"""
    return dict(kind=search_result_kind(payload), **asdict(payload))


def search_result_kind(payload) -> str:
    for kind, result_type in SEARCH_RESULT_TYPES.items():
        if isinstance(payload, result_type):
            return kind
    raise ValueError(f"Not a search result: {type(payload).__name__}")


@dataclass
class Finding:
    kind: str
    severity: str
    message: str


@dataclass
class SearchOutcome:
    status: str
    mandatory: bool
    findings: List[Finding] = field(default_factory=list)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'SearchOutcome':
        return cls(
            status=data['status'],
            mandatory=data['mandatory'],
            findings=[Finding(**f) for f in data.get('findings') or []],
            result=data.get('result'),
            error=data.get('error')
        )


@dataclass
class Report:
    case_id: str
    email: str
    tier: str
    package: str
    verdict: str
    completed_at: str
    searches: Dict[str, SearchOutcome] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Report':
        return cls(
            case_id=data['case_id'],
            email=data['email'],
            tier=data['tier'],
            package=data['package'],
            verdict=data['verdict'],
            completed_at=data['completed_at'],
            searches={k: SearchOutcome.from_dict(v) for k, v in (data.get('searches') or {}).items()}
        )

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class SearchStatus:
    status: str
    started_at: str
    completed_at: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BackgroundCheckStatus:
    email: str
    tier: str
    package: str
    state: str
    started_at: str
    completed_at: Optional[str] = None
    searches: Dict[str, SearchStatus] = field(default_factory=dict)
    report: Optional[Report] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'BackgroundCheckStatus':
        report = data.get('report')
        return cls(
            email=data['email'],
            tier=data['tier'],
            package=data['package'],
            state=data['state'],
            started_at=data['started_at'],
            completed_at=data.get('completed_at'),
            searches={k: SearchStatus(**v) for k, v in (data.get('searches') or {}).items()},
            report=Report.from_dict(report) if report else None
        )

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class IssuedTodo:
    """Sent by an activity to its workflow once it holds a completion token"""
    kind: str
    token: str
    created_at: str
    deadline: str


@dataclass
class CandidateTodo:
    token: str
    kind: str
    created_at: str
    deadline: str


@dataclass
class ResearcherTodo:
    token: str
    kind: str
    email: str
    created_at: str
    deadline: str
