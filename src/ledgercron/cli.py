"""Flask CLI commands for ledgercron."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Optional

import click

_DATE = click.DateTime(formats=["%Y-%m-%d"])


def _rule_repo():
    from .extensions import get_session_factory
    from .infra.repositories import SQLModelRecurringRuleRepository

    return SQLModelRecurringRuleRepository(get_session_factory())


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("run-recurring")
    @click.option("--now", "now", type=click.DateTime(), default=None, help="Reference time (UTC)")
    def run_recurring_command(now: Optional[datetime]) -> None:
        """Run one recurring-transaction invocation and print the summary."""

        from .exceptions import RuleLoadError
        from .extensions import get_admin_client
        from .services.recurring import run_recurring

        try:
            summary = run_recurring(get_admin_client(), now=now)
        except RuleLoadError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(json.dumps(summary.to_dict()))

    @app.cli.command("rules-add")
    @click.option("--user-id", type=int, required=True)
    @click.option("--wallet-id", type=int, required=True)
    @click.option("--amount", required=True, help="Amount in major units, e.g. 12.50")
    @click.option("--currency", default="USD", show_default=True)
    @click.option("--first-run", type=_DATE, required=True, help="First due date (YYYY-MM-DD)")
    @click.option("--type", "kind", type=click.Choice(["income", "expense"]), default="expense")
    @click.option(
        "--frequency", type=click.Choice(["daily", "weekly", "monthly"]), default="monthly"
    )
    @click.option("--interval", type=int, default=1, show_default=True)
    @click.option("--category-id", type=int, default=None)
    @click.option("--description", default=None)
    @click.option("--end-date", type=_DATE, default=None)
    def rules_add(
        user_id: int,
        wallet_id: int,
        amount: str,
        currency: str,
        first_run: datetime,
        kind: str,
        frequency: str,
        interval: int,
        category_id: Optional[int],
        description: Optional[str],
        end_date: Optional[datetime],
    ) -> None:
        """Create a recurring rule."""

        from .services.rules import create_rule, to_minor_units

        try:
            rule = create_rule(
                _rule_repo(),
                user_id=user_id,
                wallet_id=wallet_id,
                amount_minor=to_minor_units(amount),
                currency_code=currency,
                first_run=first_run.date(),
                type=kind,
                frequency=frequency,
                interval=interval,
                category_id=category_id,
                description=description,
                end_date=_as_date(end_date),
            )
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Created rule {rule.id}; next run {rule.next_run_at.isoformat()}")

    @app.cli.command("rules-list")
    @click.option("--user-id", type=int, required=True)
    @click.option("--active-only", is_flag=True, default=False)
    def rules_list(user_id: int, active_only: bool) -> None:
        """List a user's recurring rules."""

        from .services.rules import list_rules

        rules = list_rules(_rule_repo(), user_id=user_id, include_inactive=not active_only)
        if not rules:
            click.echo("No recurring rules.")
            return
        for rule in rules:
            state = "active" if rule.is_active else "paused"
            click.echo(
                f"{rule.id}\t{state}\t{rule.type}\t{rule.amount_minor} {rule.currency_code}\t"
                f"every {rule.interval} {rule.frequency}\tnext {rule.next_run_at.isoformat()}"
            )

    def _register_state_command(name: str, action_name: str, help_text: str) -> None:
        @app.cli.command(name, help=help_text)
        @click.argument("rule_id", type=int)
        @click.option("--user-id", type=int, required=True)
        def _command(rule_id: int, user_id: int) -> None:
            from .services import rules as rule_service

            action = getattr(rule_service, action_name)
            try:
                action(_rule_repo(), rule_id, user_id=user_id)
            except LookupError as exc:
                raise click.ClickException(str(exc)) from exc
            click.echo(f"Rule {rule_id}: {action_name.split('_')[0]}d")

    _register_state_command("rules-pause", "pause_rule", "Pause a recurring rule.")
    _register_state_command("rules-activate", "activate_rule", "Resume a paused rule.")
    _register_state_command("rules-delete", "delete_rule", "Delete a recurring rule.")
