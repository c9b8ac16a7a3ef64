"""
Markdown Debts Report

Renders the "Debts & Lending Summary" note for an Obsidian vault:
- front matter with tags and update time
- overview table (total lent, total borrowed, net position)
- one section per person, highest owed-to-you first
- recently settled transactions

The writer only READS the ledger. It never mutates a record.
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from debtq.config import get_settings
from debtq.ledger.groups import PersonGroupIndex
from debtq.ledger.netting import NettingCalculator
from debtq.ledger.store import TransactionStore
from debtq.models.debt import BalanceStatus, DebtTransaction, PersonGroup


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


def format_amount(amount: Decimal) -> str:
    return f"{amount:.2f}"


def escape_cell(text: Optional[str]) -> str:
    """Keep table cells on one line and pipes out of the column layout."""
    if not text:
        return ""
    return text.replace("|", "\\|").replace("\n", " ")


class DebtReportWriter:
    """Builds the debts note from the store's current state."""

    def __init__(
        self,
        store: TransactionStore,
        vault_path: Optional[Path] = None,
        filename: Optional[str] = None,
        settled_history_limit: int = 20,
    ):
        settings = get_settings().report
        self._store = store
        self._groups = PersonGroupIndex(store)
        self._netting = NettingCalculator(store)
        self._vault_path = Path(vault_path) if vault_path is not None else settings.vault_path
        self._filename = filename or settings.filename
        self._settled_history_limit = settled_history_limit

    @property
    def path(self) -> Path:
        return self._vault_path / self._filename

    def render(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        totals = self._netting.totals()
        updated = now.strftime(TIMESTAMP_FORMAT)

        lines = [
            "---",
            "tags: [debtq, debts, lending, finance]",
            f"updated: {updated}",
            "---",
            "",
            "# Debts & Lending Summary",
            "",
            f"> Last Updated: {updated}",
            "",
            "## Overview",
            "",
            "| Metric | Amount |",
            "|--------|--------|",
            f"| Total Lent (others owe you) | {format_amount(totals.total_lent)} |",
            f"| Total Borrowed (you owe) | {format_amount(totals.total_borrowed)} |",
            f"| **Net Position** | {format_amount(totals.net_position)} |",
            "",
            "---",
            "",
            "## By Person",
            "",
        ]

        groups = self._groups.sorted_by_net()
        if not groups:
            lines.append("*No pending debts*")
            lines.append("")
        for group in groups:
            lines.extend(self._render_person(group))

        lines.extend(self._render_settled())
        return "\n".join(lines).rstrip() + "\n"

    def write(self, now: Optional[datetime] = None) -> Path:
        """
        Write the note into the vault directory (created if missing).

        Raises:
            OSError: If the directory or file cannot be written
        """
        content = self.render(now)
        self._vault_path.mkdir(parents=True, exist_ok=True)
        self.path.write_text(content, encoding="utf-8")
        return self.path

    def _render_person(self, group: PersonGroup) -> list[str]:
        lines = [f"### {group.person}", ""]

        if group.status == BalanceStatus.OWES_YOU:
            lines.append(f"**Owes you: {format_amount(group.net_balance)}**")
        elif group.status == BalanceStatus.YOU_OWE:
            lines.append(f"**You owe: {format_amount(-group.net_balance)}**")
        else:
            lines.append("**Settled**")
        lines.append("")

        if group.lent:
            lines.extend(self._render_table("Lent", group.lent, "+"))
        if group.borrowed:
            lines.extend(self._render_table("Borrowed", group.borrowed, "-"))

        lines.extend(["---", ""])
        return lines

    def _render_table(self, title: str, transactions: list[DebtTransaction], sign: str) -> list[str]:
        lines = [
            f"**{title}:**",
            "| Date | Amount | Reason |",
            "|------|--------|--------|",
        ]
        for tx in transactions:
            lines.append(
                f"| {tx.transaction_date.strftime(DATE_FORMAT)} "
                f"| {sign}{format_amount(tx.amount)} "
                f"| {escape_cell(tx.description)} |"
            )
        lines.append("")
        return lines

    def _render_settled(self) -> list[str]:
        settled = sorted(
            self._store.all_settled(),
            # timestamp() orders naive and offset-aware datetimes alike
            key=lambda tx: tx.settled_date.timestamp(),
            reverse=True,
        )[:self._settled_history_limit]
        if not settled:
            return []

        lines = [
            "## Recently Settled",
            "",
            "| Settled | Person | Type | Amount | Note |",
            "|---------|--------|------|--------|------|",
        ]
        for tx in settled:
            lines.append(
                f"| {tx.settled_date.strftime(DATE_FORMAT)} "
                f"| {escape_cell(tx.person)} "
                f"| {tx.kind.value} "
                f"| {format_amount(tx.settlement_amount or tx.amount)} "
                f"| {escape_cell(tx.settlement_note)} |"
            )
        lines.append("")
        return lines
