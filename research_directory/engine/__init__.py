"""Filter, sort and merge engine for the expert and opportunity directories."""

from .agencies import AgencyHierarchy
from .citations import ALL_TIME_YEAR, citations_since
from .criteria import (
    FUNDING_BUCKETS,
    ExpertCriteria,
    FundingBucket,
    OpportunityCriteria,
    PublicationCriteria,
)
from .filters import (
    filter_experts,
    filter_opportunities,
    filter_publications,
    is_open,
)
from .merge import DetailIndex, merge_records
from .pipeline import (
    ExpertDirectory,
    ExpertProfileView,
    ExpertSnapshot,
    OpportunityBoard,
    OpportunitySnapshot,
    query_experts,
    query_opportunities,
    query_publications,
)
from .sorting import SORTERS, sort_records

__all__ = [
    "AgencyHierarchy",
    "ALL_TIME_YEAR",
    "citations_since",
    "FUNDING_BUCKETS",
    "ExpertCriteria",
    "FundingBucket",
    "OpportunityCriteria",
    "PublicationCriteria",
    "filter_experts",
    "filter_opportunities",
    "filter_publications",
    "is_open",
    "DetailIndex",
    "merge_records",
    "ExpertDirectory",
    "ExpertProfileView",
    "ExpertSnapshot",
    "OpportunityBoard",
    "OpportunitySnapshot",
    "query_experts",
    "query_opportunities",
    "query_publications",
    "SORTERS",
    "sort_records",
]
