"""
Controller (producer) Package
Turns operator goals into validated, paced mailbox commands.
"""
from .liveness import ProcessProbe, list_process_names
from .plan_parser import Plan, extract
from .journal import JournalEntry, PlanJournal, load_journal, select_entry
from .orchestrator import (
    CommandDispatcher,
    PlanOrchestrator,
    CycleResult,
    CycleState,
    Outcome
)

__all__ = [
    'ProcessProbe',
    'list_process_names',
    'Plan',
    'extract',
    'JournalEntry',
    'PlanJournal',
    'load_journal',
    'select_entry',
    'CommandDispatcher',
    'PlanOrchestrator',
    'CycleResult',
    'CycleState',
    'Outcome'
]
