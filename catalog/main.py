"""CLI entry point for the model price catalog."""

import argparse
import logging
import sys
from pathlib import Path

from catalog.engine import classification, costs, filtering
from catalog.engine.filtering import FilterCriteria, SortKey, SortOrder
from catalog.errors import ApiError, MalformedResponse
from catalog.exporters.json_export import export_all
from catalog.formatting import format_number, format_price, format_window
from catalog.records import ModelRecord
from catalog.sources import models_api
from catalog.sources.client import ApiClient
from catalog.state import AppState

logger = logging.getLogger(__name__)


def _price_label(model: ModelRecord) -> str:
    price = filtering.effective_price(model)
    if price is None:
        return "n/a"
    return f"{format_price(price, model.display_unit, digits=4)}/1K"


def _model_line(model: ModelRecord) -> str:
    return (
        f"{model.id:<40} {model.brand:<14} {model.name:<28} "
        f"{format_window(model.window):>7}  {_price_label(model)}"
    )


def _criteria_from_args(args: argparse.Namespace) -> FilterCriteria:
    price_range = None
    if args.min_price is not None or args.max_price is not None:
        price_range = (
            args.min_price if args.min_price is not None else 0.0,
            args.max_price if args.max_price is not None else float("inf"),
        )
    window_range = None
    if args.min_window is not None or args.max_window is not None:
        window_range = (
            args.min_window if args.min_window is not None else 0,
            args.max_window if args.max_window is not None else sys.maxsize,
        )
    return FilterCriteria(
        brands=frozenset(args.brand or ()),
        price_range=price_range,
        window_range=window_range,
        sort_by=SortKey(args.sort) if args.sort else None,
        sort_order=SortOrder(args.order),
    )


def _select_for_compare(state: AppState, ids: list[str]) -> list[ModelRecord]:
    by_id = {m.id: m for m in state.models}
    for model_id in ids:
        model = by_id.get(model_id)
        if model is None:
            logger.warning("Unknown model id: %s", model_id)
            continue
        if not state.add_to_compare(model):
            logger.warning("Skipping %s: compare list is full or already has it", model_id)
    return state.compare_models()


def cmd_list(client: ApiClient, args: argparse.Namespace) -> int:
    state = AppState(filters=_criteria_from_args(args), search_query=args.query or "")
    state.set_models(models_api.fetch_models(client))
    visible = state.visible_models()
    for model in visible:
        print(_model_line(model))
    print(f"{len(visible)} of {len(state.models)} models")
    return 0


def cmd_search(client: ApiClient, args: argparse.Namespace) -> int:
    result = filtering.search(models_api.fetch_models(client), args.query)
    for model in result.models:
        print(_model_line(model))
    print(f"{result.total} models match {result.query!r}")
    return 0


def cmd_show(client: ApiClient, args: argparse.Namespace) -> int:
    model = models_api.get_model_by_id(client, args.model_id)
    if model is None:
        logger.error("No model with id %s", args.model_id)
        return 1

    print(f"{model.brand} {model.name} ({model.id})")
    print(f"  Context window: {format_number(model.window)} tokens")
    if model.data_amount is not None:
        print(f"  Data amount: {model.data_amount}B")
    for offer in model.providers:
        if offer.tokens is None:
            continue
        print(
            f"  {offer.display_name:<20} in {format_price(offer.tokens.input, offer.tokens.unit, 4)}"
            f"  out {format_price(offer.tokens.output, offer.tokens.unit, 4)}"
            f"  reliability {offer.reliability_score:.1f}  {offer.response_time_ms:.0f}ms"
        )

    cost = costs.estimate(model, args.input_tokens, args.output_tokens, provider=args.provider)
    if cost is None:
        print("  No price listed; cannot estimate")
        return 0
    print(
        f"  Estimate for {args.input_tokens} in / {args.output_tokens} out: "
        f"{format_price(cost.input_cost, cost.unit, 4)} + "
        f"{format_price(cost.output_cost, cost.unit, 4)} = "
        f"{format_price(cost.total_cost, cost.unit, 4)}"
    )
    return 0


def cmd_tiers(client: ApiClient, args: argparse.Namespace) -> int:
    tiers = classification.classify(models_api.fetch_models(client))
    for tier, members in tiers.items():
        print(f"[{tier.value}] {len(members)} models")
        for model in members:
            print(f"  {_model_line(model)}")
    return 0


def cmd_compare(client: ApiClient, args: argparse.Namespace) -> int:
    state = AppState()
    state.set_models(models_api.fetch_models(client))
    selected = _select_for_compare(state, args.model_ids)
    if not selected:
        logger.error("Nothing to compare")
        return 1

    comparison = costs.compare(selected, args.input_tokens, args.output_tokens)
    if comparison.mixed_units:
        print(f"Warning: totals mix currencies ({', '.join(comparison.units)})")
    for entry in comparison.entries:
        marker = "*" if entry.is_best_value else " "
        print(
            f"{marker} {entry.model.id:<40} "
            f"{format_price(entry.cost.total_cost, entry.cost.unit, 4)}"
        )
    for model in comparison.unpriced:
        print(f"  {model.id:<40} no price")
    print("By window per unit cost:")
    for i, entry in enumerate(comparison.by_value, 1):
        print(f"  {i}. {entry.model.id:<40} {entry.value_ratio:,.0f}")
    return 0


def cmd_export(client: ApiClient, args: argparse.Namespace) -> int:
    state = AppState()
    state.set_models(models_api.fetch_models(client))
    comparison = None
    if args.compare:
        selected = _select_for_compare(state, args.compare)
        comparison = costs.compare(selected, args.input_tokens, args.output_tokens)

    paths = export_all(
        state.visible_models(),
        output_dir=args.output_dir,
        comparison=comparison,
        source_url=client.base_url,
    )
    for name, path in paths.items():
        logger.info("Exported %s -> %s", name, path)
    return 0


def cmd_health(client: ApiClient, args: argparse.Namespace) -> int:
    status = models_api.check_health(client)
    print(f"{status.base_url}: {'healthy' if status.healthy else 'unreachable'}")
    return 0 if status.healthy else 1


COMMANDS = {
    "list": cmd_list,
    "search": cmd_search,
    "show": cmd_show,
    "tiers": cmd_tiers,
    "compare": cmd_compare,
    "export": cmd_export,
    "health": cmd_health,
}


def _add_token_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--input-tokens", type=int, default=1000)
    parser.add_argument("--output-tokens", type=int, default=1000)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI model price catalog")
    parser.add_argument("--base-url", default=None, help="Catalog API base URL")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List models with filters and sorting")
    p_list.add_argument("--brand", action="append", help="Allowed brand (repeatable)")
    p_list.add_argument("--min-price", type=float)
    p_list.add_argument("--max-price", type=float)
    p_list.add_argument("--min-window", type=int)
    p_list.add_argument("--max-window", type=int)
    p_list.add_argument("--sort", choices=[k.value for k in SortKey], default="name")
    p_list.add_argument("--order", choices=[o.value for o in SortOrder], default="asc")
    p_list.add_argument("--query", help="Substring to match in name or brand")

    p_search = sub.add_parser("search", help="Search models by name or brand")
    p_search.add_argument("query")

    p_show = sub.add_parser("show", help="Show one model with a cost estimate")
    p_show.add_argument("model_id")
    p_show.add_argument("--provider", help="Provider machine name to price against")
    _add_token_args(p_show)

    sub.add_parser("tiers", help="Group models into price tiers")

    p_compare = sub.add_parser("compare", help="Rank up to 4 models by estimated cost")
    p_compare.add_argument("model_ids", nargs="+")
    _add_token_args(p_compare)

    p_export = sub.add_parser("export", help="Write JSON views for a static frontend")
    p_export.add_argument("--output-dir", type=Path, default=None)
    p_export.add_argument("--compare", nargs="*", default=[], help="Model ids to compare")
    _add_token_args(p_export)

    sub.add_parser("health", help="Check whether the catalog API is reachable")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        with ApiClient(base_url=args.base_url) as client:
            return COMMANDS[args.command](client, args)
    except MalformedResponse as e:
        # Format breaks won't fix themselves; report and stop
        logger.error("Catalog API response format changed: %s", e)
        return 1
    except ApiError as e:
        logger.error("Catalog API request failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
