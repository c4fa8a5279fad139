"""Deterministic identifiers derived from a candidate's email."""

CASE_PREFIX = 'BackgroundCheck-'
CANDIDATE_PREFIX = 'Candidate-'
RESEARCHER_PREFIX = 'Researcher-'


def background_check_workflow_id(email: str) -> str:
    return f'{CASE_PREFIX}{email}'


def candidate_workflow_id(email: str) -> str:
    return f'{CANDIDATE_PREFIX}{email}'


def researcher_workflow_id(email: str) -> str:
    return f'{RESEARCHER_PREFIX}{email}'


def research_activity_id(email: str, kind: str) -> str:
    """Activity id of one search within a researcher's queue"""
    return f'{researcher_workflow_id(email)}-{kind}'


def email_from_workflow_id(workflow_id: str) -> str:
    if not workflow_id.startswith(CASE_PREFIX):
        raise ValueError(f"Not a background check workflow id: {workflow_id}")
    return workflow_id[len(CASE_PREFIX):]
