"""Record models and database access for the directory data."""

from .connection import get_db_connection, init_database
from .models import (
    Agency,
    Expert,
    ExpertDetail,
    Opportunity,
    OpportunityDetail,
    Publication,
)
from .experts_db import (
    init_expert_tables,
    list_tables,
    describe_table,
    fetch_similar_profile_pairs,
)

__all__ = [
    "get_db_connection",
    "init_database",
    "Agency",
    "Expert",
    "ExpertDetail",
    "Opportunity",
    "OpportunityDetail",
    "Publication",
    "init_expert_tables",
    "list_tables",
    "describe_table",
    "fetch_similar_profile_pairs",
]
