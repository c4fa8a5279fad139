"""Deterministic findings and verdict for a finished set of searches.

Runs inside workflow code, so it must stay free of I/O, clocks and randomness.
"""
from dataclasses import asdict
from typing import Dict, List, Optional

from app.workflows.catalog import is_mandatory
from app.workflows.types import (
    BackgroundCheckInput, CriminalSearchResult, EducationVerificationResult,
    EmploymentVerificationResult, Finding, MotorVehicleResult, Report,
    SearchOutcome, SearchState, SSNTraceResult, search_result_kind
)

INFO = 'info'
WARN = 'warn'
FAIL = 'fail'

VERDICT_PASS = 'pass'
VERDICT_FAIL = 'fail'


def _ssn_findings(result: SSNTraceResult) -> List[Finding]:
    if not result.ssn_is_valid:
        return [Finding('ssn_trace', FAIL, 'SSN could not be validated')]
    if not result.known_addresses:
        return [Finding('ssn_trace', WARN, 'SSN valid but no address history found')]
    return [Finding('ssn_trace', INFO, f'SSN valid, {len(result.known_addresses)} known address(es)')]


def _criminal_findings(result: CriminalSearchResult) -> List[Finding]:
    if not result.records:
        return [Finding('criminal', INFO, 'No criminal records found')]
    findings = []
    for record in result.records:
        if record.severity == 'felony':
            severity = FAIL
        elif record.severity == 'misdemeanor':
            severity = WARN
        else:
            severity = INFO
        where = f' ({record.jurisdiction})' if record.jurisdiction else ''
        findings.append(Finding('criminal', severity, f'{record.severity.title()}: {record.offense}{where}'))
    return findings


def _employment_findings(result: EmploymentVerificationResult) -> List[Finding]:
    if result.employer_verified:
        return [Finding('employment', INFO, f'Employment verified{_at(result.employer)}')]
    return [Finding('employment', WARN, f'Employment not verified{_at(result.employer)}{_because(result.reason)}')]


def _education_findings(result: EducationVerificationResult) -> List[Finding]:
    if result.degree_verified:
        return [Finding('education', INFO, f'Degree verified{_at(result.institution)}')]
    return [Finding('education', WARN, f'Degree not verified{_at(result.institution)}{_because(result.reason)}')]


def _motor_vehicle_findings(result: MotorVehicleResult) -> List[Finding]:
    findings = []
    if not result.license_valid:
        findings.append(Finding('motor_vehicle', FAIL, 'Driver license is not valid'))
    for violation in result.violations:
        findings.append(Finding('motor_vehicle', WARN, f'Violation: {violation}'))
    if not findings:
        findings.append(Finding('motor_vehicle', INFO, 'Valid license, no violations'))
    return findings


def _at(name: Optional[str]) -> str:
    return f' at {name}' if name else ''


def _because(reason: Optional[str]) -> str:
    return f': {reason}' if reason else ''


_FINDERS = {
    SSNTraceResult: _ssn_findings,
    CriminalSearchResult: _criminal_findings,
    EmploymentVerificationResult: _employment_findings,
    EducationVerificationResult: _education_findings,
    MotorVehicleResult: _motor_vehicle_findings,
}


def findings_for(payload) -> List[Finding]:
    """Findings for one search result payload"""
    finder = _FINDERS.get(type(payload))
    if finder is None:
        raise ValueError(f"No findings policy for {type(payload).__name__}")
    return finder(payload)


def verdict_for(findings: List[Finding]) -> str:
    return VERDICT_FAIL if any(f.severity == FAIL for f in findings) else VERDICT_PASS


def build_report(case_id: str, check: BackgroundCheckInput, results: Dict[str, object],
                 errors: Dict[str, str], completed_at: str) -> Report:
    """Assemble the final report.

    ``results`` maps each completed search kind to its payload, ``errors`` maps
    each failed search kind to the failure message. Failed searches contribute
    no findings; the caller decides beforehand whether a failure is fatal.
    """
    searches = {}
    all_findings = []
    for kind, payload in results.items():
        if search_result_kind(payload) != kind:
            raise ValueError(f"Result for {kind} is a {type(payload).__name__}")
        findings = findings_for(payload)
        all_findings.extend(findings)
        searches[kind] = SearchOutcome(
            status=SearchState.COMPLETED,
            mandatory=is_mandatory(check.package, kind),
            findings=findings,
            result=asdict(payload)
        )
    for kind, error in errors.items():
        searches[kind] = SearchOutcome(
            status=SearchState.FAILED,
            mandatory=is_mandatory(check.package, kind),
            error=error
        )

    return Report(
        case_id=case_id,
        email=check.email,
        tier=check.tier,
        package=check.package,
        verdict=verdict_for(all_findings),
        completed_at=completed_at,
        searches=searches
    )
