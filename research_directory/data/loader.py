"""
Loading the static JSON documents the directory runs on.

Documents are read from a local directory or fetched over HTTP. A document
that cannot be read, parsed or has the wrong top-level container raises
DataLoadError; DataService turns that into an empty collection for that
document only, so the rest of the directory keeps working.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar, Union

import requests
from pydantic import BaseModel, ValidationError

from config.settings import settings
from ..engine.merge import DetailIndex
from ..engine.pipeline import ExpertSnapshot, OpportunitySnapshot
from ..engine.agencies import AgencyHierarchy
from .models import (
    Agency,
    Expert,
    ExpertDetail,
    Opportunity,
    OpportunityDetail,
    to_identifier,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Source = Union[str, Path]


class DataLoadError(Exception):
    """A top-level JSON document could not be loaded."""


def resolve_source(name: str, base: Optional[Source] = None) -> str:
    """Location of document ``name`` under a directory or base URL."""
    base = str(base if base is not None else settings.data_dir)
    if base.startswith(("http://", "https://")):
        return f"{base.rstrip('/')}/{name}"
    return str(Path(base) / name)


def load_json(source: Source, timeout: Optional[int] = None) -> Any:
    """
    Read a JSON document from a path or an http(s) URL.

    Raises:
        DataLoadError: When the document cannot be fetched, read or parsed
    """
    location = str(source)

    if location.startswith(("http://", "https://")):
        try:
            response = requests.get(
                location,
                headers={"Cache-Control": "no-store"},
                timeout=timeout or settings.request_timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            raise DataLoadError(
                f"Failed to fetch {location} (HTTP {e.response.status_code})"
            ) from e
        except requests.exceptions.RequestException as e:
            raise DataLoadError(f"Failed to fetch {location}: {e}") from e
        except ValueError as e:
            raise DataLoadError(f"{location} is not valid JSON: {e}") from e

    try:
        with open(location, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise DataLoadError(f"Failed to read {location}: {e}") from e
    except ValueError as e:
        raise DataLoadError(f"{location} is not valid JSON: {e}") from e


def _require_list(data: Any, source: Source) -> List[Any]:
    if not isinstance(data, list):
        raise DataLoadError(f"{source} must be a JSON array")
    return data


def _require_mapping(data: Any, source: Source) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise DataLoadError(f"{source} must be a JSON object")
    return data


def adapt(model: Type[ModelT], raw: Any, label: str) -> Optional[ModelT]:
    """Validate one upstream record, skipping it with a warning if unusable."""
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        reason = e.errors()[0]["msg"] if e.errors() else str(e)
        logger.warning(f"Skipping {label} record: {reason}")
        return None


def _adapt_all(model: Type[ModelT], items: List[Any], label: str) -> Tuple[ModelT, ...]:
    records = (adapt(model, item, label) for item in items)
    return tuple(record for record in records if record is not None)


def _with_key(raw: Any, key_field: str, key: str) -> Any:
    if isinstance(raw, dict) and to_identifier(raw.get(key_field)) is None:
        return {**raw, key_field: key}
    return raw


def load_experts(source: Source) -> Tuple[Expert, ...]:
    data = _require_list(load_json(source), source)
    return _adapt_all(Expert, data, "expert")


def load_expert_details(source: Source) -> DetailIndex:
    """Expert details keyed by expert id."""
    data = _require_mapping(load_json(source), source)
    details = {}
    for key, raw in data.items():
        detail = adapt(ExpertDetail, _with_key(raw, "id", str(key)), "expert detail")
        if detail is not None:
            details[str(key)] = detail
    return DetailIndex(details)


def load_similar_profiles(source: Source) -> Dict[str, Tuple[str, ...]]:
    data = _require_mapping(load_json(source), source)
    similar = {}
    for key, ids in data.items():
        if not isinstance(ids, list):
            logger.warning(f"Skipping similar profiles for {key}: not a list")
            continue
        similar[str(key)] = tuple(
            identifier for identifier in map(to_identifier, ids) if identifier
        )
    return similar


def load_opportunities(source: Source) -> Tuple[Opportunity, ...]:
    data = _require_list(load_json(source), source)
    return _adapt_all(Opportunity, data, "opportunity")


def load_opportunity_details(source: Source) -> DetailIndex:
    """Opportunity details from either an array or an object keyed by opp_id."""
    data = load_json(source)
    if isinstance(data, dict):
        items = [_with_key(raw, "opp_id", str(key)) for key, raw in data.items()]
    else:
        items = _require_list(data, source)
    return DetailIndex.from_records(
        _adapt_all(OpportunityDetail, items, "opportunity detail"), "opp_id"
    )


def load_agencies(source: Source) -> Tuple[Agency, ...]:
    data = _require_list(load_json(source), source)
    return _adapt_all(Agency, data, "agency")


class DataService:
    """
    Owns the loaded collections.

    Each ``load_*`` method replaces one collection wholesale. When a document
    fails to load the error is logged and the collection is left empty.
    """

    def __init__(self, data_dir: Optional[Source] = None):
        self.data_dir = data_dir if data_dir is not None else settings.data_dir
        self.experts: Tuple[Expert, ...] = ()
        self.expert_details: DetailIndex = DetailIndex()
        self.similar_profiles: Dict[str, Tuple[str, ...]] = {}
        self.opportunities: Tuple[Opportunity, ...] = ()
        self.opportunity_details: DetailIndex = DetailIndex()
        self.agencies: Tuple[Agency, ...] = ()

    def _load(self, loader: Callable[[Source], Any], name: str, empty: Any) -> Any:
        source = resolve_source(name, self.data_dir)
        try:
            result = loader(source)
        except DataLoadError as e:
            logger.error(f"Failed to load {name}: {e}")
            return empty
        logger.info(f"Loaded {len(result)} entries from {name}")
        return result

    def load_experts(self) -> None:
        self.experts = self._load(load_experts, settings.experts_file, ())

    def load_expert_details(self) -> None:
        self.expert_details = self._load(
            load_expert_details, settings.expert_details_file, DetailIndex()
        )

    def load_similar_profiles(self) -> None:
        self.similar_profiles = self._load(
            load_similar_profiles, settings.similar_profiles_file, {}
        )

    def load_opportunities(self) -> None:
        self.opportunities = self._load(load_opportunities, settings.opportunities_file, ())

    def load_opportunity_details(self) -> None:
        self.opportunity_details = self._load(
            load_opportunity_details, settings.opportunity_details_file, DetailIndex()
        )

    def load_agencies(self) -> None:
        self.agencies = self._load(load_agencies, settings.agencies_file, ())

    def load_all(self, max_workers: int = 6) -> None:
        """Load every document; the fetches are independent of each other."""
        loaders = [
            self.load_experts,
            self.load_expert_details,
            self.load_similar_profiles,
            self.load_opportunities,
            self.load_opportunity_details,
            self.load_agencies,
        ]
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            for future in [executor.submit(loader) for loader in loaders]:
                future.result()

    def expert_snapshot(self) -> ExpertSnapshot:
        return ExpertSnapshot(
            experts=self.experts,
            details=self.expert_details,
            similar=self.similar_profiles,
        )

    def opportunity_snapshot(self) -> OpportunitySnapshot:
        return OpportunitySnapshot(
            opportunities=self.opportunities,
            details=self.opportunity_details,
            agencies=AgencyHierarchy(self.agencies),
        )
