"""
Query the exported directory JSON from the command line.

Examples:
    python scripts/query_directory.py experts --search smith --sort citations --since 2020
    python scripts/query_directory.py profile 12345 --sort year_desc
    python scripts/query_directory.py opportunities --agency 7 --bucket 2
"""

import logging
import sys
from pathlib import Path

#
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from research_directory.data.loader import DataService
from research_directory.engine import (
    ALL_TIME_YEAR,
    FUNDING_BUCKETS,
    ExpertDirectory,
    OpportunityBoard,
)
from research_directory.engine.citations import citations_since
from research_directory.text import description_text, format_date, format_money


def show_experts(service: DataService, args) -> None:
    service.load_experts()
    directory = ExpertDirectory(service.expert_snapshot())
    directory.filter_by(
        search=args.search,
        colleges=frozenset(args.college or ()),
        departments=frozenset(args.department or ()),
        degrees=frozenset(args.degree or ()),
        min_citations=args.min_citations,
        recency_year=args.since,
    )
    directory.sort_by(args.sort or "name_asc")

    results = directory.results()
    print(f"{len(results)} experts")
    for i, expert in enumerate(results[:args.limit], 1):
        cited = citations_since(expert, args.since)
        print(f"{i}. {expert.name} [{expert.id}]")
        print(f"   {expert.department or '-'}, {expert.college or '-'}")
        print(f"   Citations: {cited}  Publications: {expert.publication_count}")


def show_profile(service: DataService, args) -> None:
    service.load_experts()
    service.load_expert_details()
    service.load_similar_profiles()
    profile = ExpertDirectory(service.expert_snapshot()).profile(args.expert_id)
    if profile is None:
        print(f"Error: no expert with id {args.expert_id}")
        sys.exit(1)

    profile.filter_by(
        search=args.search,
        min_citations=args.min_citations,
        recency_year=args.since,
        start_year=args.start_year,
        end_year=args.end_year,
    )
    profile.sort_by(args.sort or "year_desc")

    expert = profile.expert
    print(f"{expert.name}")
    print(f"{expert.title or ''}, {expert.department or ''}")
    print(f"Total Cited: {profile.total_cited()}")

    publications = profile.publications()
    print(f"\n{len(publications)} publications")
    for i, pub in enumerate(publications[:args.limit], 1):
        print(f"\n{i}. {pub.title}")
        print(f"   Citations: {citations_since(pub, args.since)}")
        if pub.publication_date:
            print(f"   Date: {pub.publication_date}")
        if pub.published_in:
            print(f"   Venue: {pub.published_in}")
        if pub.link:
            print(f"   URL: {pub.link}")

    similar = profile.similar()
    if similar:
        print("\nSimilar researchers: " + ", ".join(name for _, name in similar))


def show_opportunities(service: DataService, args) -> None:
    service.load_opportunities()
    service.load_opportunity_details()
    service.load_agencies()
    board = OpportunityBoard(service.opportunity_snapshot(), page_size=args.limit)
    board.search(args.search)
    board.choose_funding_bucket(args.bucket)
    board.choose_agency(args.agency)
    board.sort_by(args.sort or "due_asc")

    page = board.visible()
    print(f"{page.total} open opportunities")
    for i, opp in enumerate(page.items, 1):
        print(f"{i}. {opp.title or '(Untitled)'} [{opp.opp_id}]")
        print(f"   Posted: {format_date(opp.post_date)}  Due: {format_date(opp.due_date)}")
    if page.has_more:
        print(f"... {page.total - len(page.items)} more")

    if args.show:
        board.select(args.show)
        opp = board.selected()
        if opp is None:
            print(f"\nNo opportunity with id {args.show}")
            return
        print(f"\n{'='*60}")
        print(opp.title or "(Untitled)")
        print(f"{'='*60}")
        print(f"Award ceiling: {format_money(opp.award_ceiling)}")
        print(f"Award floor: {format_money(opp.award_floor)}")
        print(f"Estimated funding: {format_money(opp.estimated_funding)}")
        if opp.url:
            print(f"URL: {opp.url}")
        print(f"\nDescription: {description_text(opp.description) or 'N/A'}")
        print(f"Eligibility: {', '.join(opp.eligibility) or 'N/A'}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Query the research directory")
    parser.add_argument("--data", default=None, help="Data directory or base URL")
    parser.add_argument("--limit", type=int, default=24, help="Results to print (default: 24)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    experts = subparsers.add_parser("experts", help="Search experts")
    experts.add_argument("--search", default="")
    experts.add_argument("--college", action="append")
    experts.add_argument("--department", action="append")
    experts.add_argument("--degree", action="append")
    experts.add_argument("--min-citations", type=int, default=0)
    experts.add_argument("--since", type=int, default=ALL_TIME_YEAR,
                         help="Count citations from this year on (default: all time)")
    experts.add_argument("--sort", default=None)

    profile = subparsers.add_parser("profile", help="Show one expert's publications")
    profile.add_argument("expert_id")
    profile.add_argument("--search", default="")
    profile.add_argument("--min-citations", type=int, default=0)
    profile.add_argument("--since", type=int, default=ALL_TIME_YEAR)
    profile.add_argument("--start-year", type=int, default=None)
    profile.add_argument("--end-year", type=int, default=None)
    profile.add_argument("--sort", default=None)

    opportunities = subparsers.add_parser("opportunities", help="Search open opportunities")
    opportunities.add_argument("--search", default="")
    opportunities.add_argument("--agency", default=None)
    opportunities.add_argument(
        "--bucket",
        type=int,
        default=0,
        choices=range(len(FUNDING_BUCKETS)),
        help="; ".join(f"{i}: {b.label}" for i, b in enumerate(FUNDING_BUCKETS)),
    )
    opportunities.add_argument("--sort", default=None)
    opportunities.add_argument("--show", default=None, help="Print details for this opp_id")

    args = parser.parse_args()
    logging.basicConfig(level=logging.WARNING)

    service = DataService(args.data)
    if args.command == "experts":
        show_experts(service, args)
    elif args.command == "profile":
        show_profile(service, args)
    else:
        show_opportunities(service, args)
