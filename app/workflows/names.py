"""Names shared by the gateway, the case workflow and the worker."""

BACKGROUND_CHECK_WORKFLOW = 'BackgroundCheck'

# Queries
STATUS_QUERY = 'status'
CANDIDATE_TODOS_QUERY = 'candidate_todos'
RESEARCHER_TODOS_QUERY = 'researcher_todos'

# Internal signal: an activity reporting the token it is suspended on
TODO_ISSUED_SIGNAL = 'todo_issued'

# Activities
REQUEST_CONSENT_ACTIVITY = 'request_consent'
PERSIST_REPORT_ACTIVITY = 'persist_report'


def research_activity(kind: str) -> str:
    return f'research_{kind}'
