import pytest
from app.workflows import catalog
from app.workflows.types import (
    BackgroundCheckInput, CriminalRecord, CriminalSearchResult,
    EducationVerificationResult, EmploymentVerificationResult, MotorVehicleResult,
    SSNTraceResult
)
from app.workflows.verdict import FAIL, INFO, WARN, build_report, findings_for, verdict_for

CHECK = BackgroundCheckInput('a@example.com', 'full', 'driver')
CLEAN = {
    'ssn_trace': SSNTraceResult(ssn_is_valid=True, known_addresses=['1 Main St']),
    'criminal': CriminalSearchResult(records=[]),
    'employment': EmploymentVerificationResult(employer_verified=True, employer='Acme'),
    'motor_vehicle': MotorVehicleResult(license_valid=True),
}


class TestCatalog:
    """Test package search selection"""

    def test_standard_base(self):
        assert catalog.searches_for('standard', 'base') == ['ssn_trace', 'criminal', 'employment']

    def test_full_tier_adds_searches(self):
        for package in catalog.PACKAGES:
            standard = catalog.searches_for('standard', package)
            full = catalog.searches_for('full', package)
            assert len(full) >= len(standard)
            assert full[:2] == ['ssn_trace', 'criminal']

    @pytest.mark.parametrize('tier,package', [('gold', 'base'), ('standard', 'executive')])
    def test_unknown(self, tier, package):
        with pytest.raises(ValueError):
            catalog.searches_for(tier, package)

    def test_mandatory(self):
        assert catalog.is_mandatory('base', 'ssn_trace')
        assert catalog.is_mandatory('base', 'criminal')
        assert not catalog.is_mandatory('base', 'employment')
        assert catalog.is_mandatory('driver', 'motor_vehicle')
        assert not catalog.is_mandatory('professional', 'motor_vehicle')


class TestFindings:
    """Test the verdict policy"""

    def test_invalid_ssn_fails(self):
        findings = findings_for(SSNTraceResult(ssn_is_valid=False))
        assert [f.severity for f in findings] == [FAIL]

    def test_criminal_severities(self):
        findings = findings_for(CriminalSearchResult(records=[
            CriminalRecord('Burglary', 'felony', 'AZ'),
            CriminalRecord('Trespass', 'misdemeanor'),
            CriminalRecord('Jaywalking', 'infraction'),
        ]))
        assert [f.severity for f in findings] == [FAIL, WARN, INFO]
        assert findings[0].message == 'Felony: Burglary (AZ)'

    def test_unverified_employment_warns(self):
        findings = findings_for(EmploymentVerificationResult(employer_verified=False, reason='closed'))
        assert findings[0].severity == WARN
        assert 'closed' in findings[0].message

    def test_unverified_degree_warns(self):
        assert findings_for(EducationVerificationResult(degree_verified=False))[0].severity == WARN

    def test_motor_vehicle(self):
        findings = findings_for(MotorVehicleResult(license_valid=False, violations=['Speeding']))
        assert [f.severity for f in findings] == [FAIL, WARN]

    def test_verdict(self):
        assert verdict_for([]) == 'pass'
        assert verdict_for(findings_for(CLEAN['criminal'])) == 'pass'
        assert verdict_for(findings_for(SSNTraceResult(ssn_is_valid=False))) == 'fail'


class TestBuildReport:
    """Test report assembly"""

    def test_clean_report_passes(self):
        report = build_report('BackgroundCheck-a@example.com', CHECK, CLEAN, {}, '2024-01-01T00:00:00+00:00')

        assert report.verdict == 'pass'
        assert report.case_id == 'BackgroundCheck-a@example.com'
        assert set(report.searches) == set(CLEAN)
        assert report.searches['motor_vehicle'].mandatory is True
        assert report.searches['employment'].mandatory is False
        assert report.searches['ssn_trace'].result == {'ssn_is_valid': True, 'known_addresses': ['1 Main St']}

    def test_felony_fails(self):
        results = dict(CLEAN, criminal=CriminalSearchResult(records=[CriminalRecord('Arson', 'felony')]))
        report = build_report('c', CHECK, results, {}, '2024-01-01T00:00:00+00:00')
        assert report.verdict == 'fail'

    def test_failed_optional_search_recorded(self):
        results = {k: v for k, v in CLEAN.items() if k != 'employment'}
        report = build_report('c', CHECK, results, {'employment': 'DeadlineExceeded'}, '2024-01-01T00:00:00+00:00')

        assert report.verdict == 'pass'
        assert report.searches['employment'].status == 'failed'
        assert report.searches['employment'].error == 'DeadlineExceeded'
        assert report.searches['employment'].findings == []

    def test_mismatched_payload(self):
        with pytest.raises(ValueError):
            build_report('c', CHECK, {'criminal': CLEAN['ssn_trace']}, {}, '2024-01-01T00:00:00+00:00')
