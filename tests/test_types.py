import base64
from dataclasses import asdict
import pytest
from app.utils.tokens import decode_token, encode_token, token_path
from app.workflows.ids import (
    background_check_workflow_id, candidate_workflow_id, email_from_workflow_id,
    research_activity_id, researcher_workflow_id
)
from app.workflows.types import (
    BackgroundCheckInput, BackgroundCheckStatus, ConsentResult, CriminalSearchResult,
    EducationVerificationResult, EmploymentVerificationResult, MotorVehicleResult,
    SSNTraceResult, parse_search_payload, search_result_kind, search_result_payload,
    tagged_search_result
)


class TestIdentifiers:
    """Test workflow identifier scheme"""

    def test_ids(self):
        assert background_check_workflow_id('a@x.com') == 'BackgroundCheck-a@x.com'
        assert candidate_workflow_id('a@x.com') == 'Candidate-a@x.com'
        assert researcher_workflow_id('a@x.com') == 'Researcher-a@x.com'
        assert research_activity_id('a@x.com', 'criminal') == 'Researcher-a@x.com-criminal'

    def test_email_from_workflow_id(self):
        assert email_from_workflow_id('BackgroundCheck-a@x.com') == 'a@x.com'
        with pytest.raises(ValueError):
            email_from_workflow_id('Candidate-a@x.com')


class TestTokens:
    """Test task token encoding"""

    def test_round_trip_standard(self):
        token = bytes(range(256))
        assert decode_token(encode_token(token)) == token

    def test_url_safe_alphabet(self):
        token = b'\xfb\xff\xfe'
        assert decode_token(base64.urlsafe_b64encode(token).decode()) == token

    @pytest.mark.parametrize('value', ['', 'abc', 'YWJjZA', 'YW=Jj', '+/-_', 'é'])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            decode_token(value)

    def test_token_path_quotes_separators(self):
        assert token_path('+/8B==') == '%2B%2F8B%3D%3D'


class TestInput:
    """Test background check input validation"""

    def test_valid(self):
        check = BackgroundCheckInput.from_dict({'email': 'a@x.com', 'tier': 'full', 'package': 'driver'})
        assert check == BackgroundCheckInput('a@x.com', 'full', 'driver')

    @pytest.mark.parametrize('data', [
        None,
        [],
        {'email': 'a@x.com', 'tier': 'full'},
        {'email': 'a-at-x', 'tier': 'full', 'package': 'base'},
        {'email': 'a@x.com', 'tier': 'gold', 'package': 'base'},
        {'email': 'a@x.com', 'tier': 'full', 'package': ''},
        {'email': 7, 'tier': 'full', 'package': 'base'},
    ])
    def test_invalid(self, data):
        with pytest.raises(ValueError):
            BackgroundCheckInput.from_dict(data)

    def test_consent_requires_bool(self):
        assert ConsentResult.from_dict({'consent': True}).consent is True
        with pytest.raises(ValueError):
            ConsentResult.from_dict({'consent': 'true'})
        with pytest.raises(ValueError):
            ConsentResult.from_dict({'consent': 0})


class TestSearchResults:
    """Test the tagged search result union"""

    def test_variants(self):
        assert search_result_payload({'kind': 'ssn_trace', 'ssn_is_valid': False}) == \
            SSNTraceResult(ssn_is_valid=False, known_addresses=[])
        assert search_result_payload({'kind': 'criminal'}) == CriminalSearchResult(records=[])
        assert search_result_payload({'kind': 'employment', 'employer_verified': True, 'employer': 'Acme'}) == \
            EmploymentVerificationResult(employer_verified=True, employer='Acme')
        assert search_result_payload({'kind': 'education', 'degree_verified': False, 'reason': 'no record'}) == \
            EducationVerificationResult(degree_verified=False, reason='no record')
        assert search_result_payload({'kind': 'motor_vehicle', 'license_valid': True, 'violations': ['DUI']}) == \
            MotorVehicleResult(license_valid=True, violations=['DUI'])

    def test_criminal_records(self):
        result = search_result_payload({
            'kind': 'criminal',
            'records': [{'offense': 'Burglary', 'severity': 'felony', 'jurisdiction': 'Maricopa County',
                         'date': '2019-04-01'}]
        })
        assert result.records[0].severity == 'felony'
        assert result.records[0].date == '2019-04-01'

    @pytest.mark.parametrize('data', [
        {'kind': 'unknown'},
        {'ssn_is_valid': True},
        {'kind': 'ssn_trace', 'ssn_is_valid': 'yes'},
        {'kind': 'ssn_trace', 'ssn_is_valid': True, 'known_addresses': [1]},
        {'kind': 'criminal', 'records': ['Burglary']},
        {'kind': 'motor_vehicle', 'violations': []},
        'criminal',
    ])
    def test_invalid(self, data):
        with pytest.raises(ValueError):
            search_result_payload(data)

    def test_payload_must_match_kind(self):
        with pytest.raises(ValueError):
            parse_search_payload('ssn_trace', {'employer_verified': True})

    def test_other_kind_rejected_by_criminal(self):
        with pytest.raises(ValueError):
            parse_search_payload('criminal', asdict(SSNTraceResult(ssn_is_valid=False)))
        with pytest.raises(ValueError):
            parse_search_payload('criminal', {'record': [{'offense': 'Arson', 'severity': 'felony'}]})

    def test_kind_tag_checked(self):
        assert parse_search_payload('criminal', {'kind': 'criminal', 'records': []}) == \
            CriminalSearchResult(records=[])
        with pytest.raises(ValueError):
            parse_search_payload('criminal', {'kind': 'employment', 'records': []})

    def test_tagged_search_result(self):
        assert tagged_search_result(MotorVehicleResult(license_valid=False, violations=['DUI'])) == {
            'kind': 'motor_vehicle', 'license_valid': False, 'violations': ['DUI']
        }

    def test_kind_of_payload(self):
        assert search_result_kind(MotorVehicleResult(license_valid=True)) == 'motor_vehicle'
        with pytest.raises(ValueError):
            search_result_kind(ConsentResult(consent=True))


def test_status_from_query_result():
    status = BackgroundCheckStatus.from_dict({
        'email': 'a@x.com',
        'tier': 'standard',
        'package': 'base',
        'state': 'running',
        'started_at': '2024-01-01T00:00:00+00:00',
        'searches': {
            'criminal': {'status': 'running', 'started_at': '2024-01-02T00:00:00+00:00'}
        }
    })
    assert status.searches['criminal'].status == 'running'
    assert status.searches['criminal'].completed_at is None
    assert status.report is None
    assert status.to_dict()['searches']['criminal']['error'] is None
