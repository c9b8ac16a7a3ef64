"""
Streamlit Frontend for debtq

The screen the user works with: see who owes what, record new money
borrowed or lent, and settle debts.

DESIGN PRINCIPLES:
1. Every page re-reads the ledger after a change
2. Explicit confirmation before settling
3. Clear error messages in simple language
4. A failed save is shown, never hidden

The UI holds exactly one LedgerService (the ledger handle) and routes
every read and write through it.
"""

from datetime import date
from decimal import Decimal

import streamlit as st

from debtq.audit import AuditLogger
from debtq.config import get_settings, validate_all_settings
from debtq.ledger import LedgerError
from debtq.models.debt import BalanceStatus, DebtTransaction, TransactionKind
from debtq.orchestrator import LedgerService, create_ledger_service
from debtq.services.storage import PersistenceError


# Page configuration
st.set_page_config(
    page_title="debtq",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_ledger() -> LedgerService:
    """Get or create the ledger handle (cached for the session)."""
    try:
        return create_ledger_service(use_storage=True)
    except PersistenceError as e:
        AuditLogger().log_error(
            error_type="ledger_load_failed",
            error_message=str(e),
            details={"location": e.location},
        )
        st.error(f"Could not load your ledger file: {e}")
        st.warning("Running with an empty, unsaved ledger.")
        return create_ledger_service(use_storage=False)


def money(amount: Decimal) -> str:
    currency = get_settings().ledger.currency
    return f"{currency} {amount:,.2f}"


def transaction_rows(transactions: list[DebtTransaction]) -> list[dict]:
    return [
        {
            "ID": tx.id,
            "Person": tx.person,
            "Type": tx.kind.value.capitalize(),
            "Amount": float(tx.amount),
            "Date": tx.transaction_date.isoformat(),
            "Due": tx.due_date.isoformat() if tx.due_date else "",
            "Description": tx.description,
        }
        for tx in transactions
    ]


def show_save_warning(error: PersistenceError) -> None:
    st.warning(
        "Your change is applied but could NOT be saved to disk: "
        f"{error}. Use 'Retry save' in the sidebar."
    )


def main():
    """Main application entry point."""
    ledger = get_ledger()

    st.sidebar.title("💸 debtq")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Overview", "➕ Add Transaction", "🤝 Settle", "📜 History", "⚙️ Settings"],
        index=0,
    )

    if ledger.has_unsaved_changes:
        st.sidebar.error(f"Unsaved changes: {ledger.last_save_error}")
        if st.sidebar.button("Retry save"):
            try:
                ledger.save()
                st.sidebar.success("Saved.")
            except PersistenceError as e:
                st.sidebar.error(f"Still failing: {e}")

    if page == "📊 Overview":
        render_overview_page(ledger)
    elif page == "➕ Add Transaction":
        render_add_page(ledger)
    elif page == "🤝 Settle":
        render_settle_page(ledger)
    elif page == "📜 History":
        render_history_page(ledger)
    elif page == "⚙️ Settings":
        render_settings_page(ledger)


def render_overview_page(ledger: LedgerService):
    """Global totals and one card per person."""
    st.title("📊 Overview")

    totals = ledger.totals()
    col1, col2, col3 = st.columns(3)
    col1.metric("Others owe you", money(totals.total_lent))
    col2.metric("You owe", money(totals.total_borrowed))
    col3.metric("Net position", money(totals.net_position))

    groups = ledger.person_groups()
    if not groups:
        st.info("No pending debts. 🎉")
        return

    for group in groups:
        if group.status == BalanceStatus.OWES_YOU:
            headline = f"owes you {money(group.net_balance)}"
        elif group.status == BalanceStatus.YOU_OWE:
            headline = f"you owe {money(-group.net_balance)}"
        else:
            headline = "even"
        with st.expander(f"**{group.person}**: {headline}"):
            st.write(
                f"Lent: {money(group.total_lent)} · Borrowed: {money(group.total_borrowed)}"
            )
            st.dataframe(transaction_rows(group.transactions), use_container_width=True)


def render_add_page(ledger: LedgerService):
    """Record money borrowed or lent."""
    st.title("➕ Add Transaction")

    known_people = ledger.persons(include_settled=True)

    with st.form("add_transaction"):
        kind = st.radio(
            "Type",
            [TransactionKind.LENT, TransactionKind.BORROWED],
            format_func=lambda k: "I lent money" if k == TransactionKind.LENT else "I borrowed money",
            horizontal=True,
        )
        person = st.text_input(
            "Person",
            help="Names must match exactly to be grouped together. "
                 + (f"Known: {', '.join(known_people)}" if known_people else ""),
        )
        amount = st.number_input("Amount", min_value=0.0, step=100.0, format="%.2f")
        description = st.text_input("Description")
        tx_date = st.date_input("Date", value=date.today())
        has_due = st.checkbox("Set a reminder date")
        due_date = st.date_input("Due date", value=date.today()) if has_due else None

        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        try:
            tx = ledger.add_transaction(
                kind=kind,
                person=person,
                amount=Decimal(str(amount)),
                description=description,
                transaction_date=tx_date,
                due_date=due_date,
            )
            st.success(f"Saved {tx.kind.value} {money(tx.amount)} with {tx.person} (id {tx.id}).")
        except LedgerError as e:
            st.error(str(e))
        except PersistenceError as e:
            show_save_warning(e)


def render_settle_page(ledger: LedgerService):
    """Settle one transaction, or an amount with a person."""
    st.title("🤝 Settle")

    tab_person, tab_single = st.tabs(["With a person", "One transaction"])

    with tab_person:
        people = ledger.persons()
        if not people:
            st.info("Nothing to settle.")
        else:
            person = st.selectbox("Person", people)
            net = ledger.net_balance(person)
            if net > 0:
                st.write(f"{person} owes you **{money(net)}**.")
            elif net < 0:
                st.write(f"You owe {person} **{money(-net)}**.")
            else:
                st.write("Lent and borrowed cancel out; settling closes everything.")

            amount = st.number_input(
                "Amount (0 = settle everything)",
                min_value=0.0,
                max_value=float(abs(net)) if net else 0.0,
                step=100.0,
                format="%.2f",
                key="person_amount",
            )
            note = st.text_input("Note", key="person_note")
            confirm = st.checkbox("I confirm this settlement", key="person_confirm")
            if st.button("Settle with person", type="primary", disabled=not confirm):
                try:
                    result = ledger.settle_for_person(person, Decimal(str(amount)), note=note or None)
                    if result.changed:
                        st.success(
                            f"Settled {money(result.settled_amount)} with {person}. "
                            f"Net balance is now {money(ledger.net_balance(person))}."
                        )
                    else:
                        st.info("Nothing was outstanding.")
                except LedgerError as e:
                    st.error(str(e))
                except PersistenceError as e:
                    show_save_warning(e)

    with tab_single:
        open_txs = ledger.all_unsettled()
        if not open_txs:
            st.info("Nothing to settle.")
            return

        tx = st.selectbox(
            "Transaction",
            open_txs,
            format_func=lambda t: f"{t.id} · {t.person} · {t.kind.value} · {money(t.amount)} · {t.description}",
        )
        amount = st.number_input(
            "Amount to settle",
            min_value=0.01,
            max_value=float(tx.amount),
            value=float(tx.amount),
            step=100.0,
            format="%.2f",
            key="single_amount",
        )
        note = st.text_input("Note", key="single_note")
        if st.button("Settle transaction", type="primary"):
            try:
                result = ledger.settle_transaction(tx.id, Decimal(str(amount)), note=note or None)
                if result.is_split:
                    st.success(
                        f"Settled {money(result.settled_amount)}; "
                        f"{money(result.transaction.amount)} still outstanding."
                    )
                else:
                    st.success("Transaction fully settled.")
            except LedgerError as e:
                st.error(str(e))
            except PersistenceError as e:
                show_save_warning(e)


def render_history_page(ledger: LedgerService):
    """Settled transactions, optionally for one person."""
    st.title("📜 History")

    people = ledger.persons(include_settled=True)
    person = st.selectbox("Person", ["Everyone"] + people)

    if person == "Everyone":
        settled = ledger.all_settled()
    else:
        settled = [tx for tx in ledger.all_for(person) if tx.settled]

    if not settled:
        st.info("No settled transactions yet.")
        return

    st.dataframe(
        [
            {
                **row,
                "Settled": tx.settled_date.strftime("%Y-%m-%d") if tx.settled_date else "",
                "Settled amount": float(tx.settlement_amount or tx.amount),
                "Note": tx.settlement_note or "",
            }
            for tx, row in zip(settled, transaction_rows(settled))
        ],
        use_container_width=True,
    )


def render_settings_page(ledger: LedgerService):
    """Configuration status and where the data lives."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Ledger (data file, settlement)", "ledger"),
        ("Markdown report", "report"),
        ("Audit log", "audit"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            error = status.get(f"{key}_error", "Invalid configuration")
            st.error(f"❌ {name} - {error}")

    if status.get("app"):
        app_settings = get_settings().app
        st.caption(
            f"Environment: {app_settings.app_environment} · "
            f"Debug logging: {'on' if app_settings.debug_mode else 'off'}"
        )

    if status.get("ledger"):
        ledger_settings = get_settings().ledger
        st.markdown("---")
        st.markdown("### Ledger")
        st.write(f"Data file: `{ledger_settings.data_file}`")
        st.write(f"Partial settlements: **{ledger_settings.partial_strategy.value}**")
        st.write(f"Allocation order: **{ledger_settings.allocation_order.value}**")
        if ledger.report_writer is not None:
            st.write(f"Debts note: `{ledger.report_writer.path}`")

    st.markdown("---")
    st.markdown(
        "Settings come from `DEBTQ_*` environment variables or a `.env` file, "
        "e.g. `DEBTQ_PARTIAL_STRATEGY=split` or `DEBTQ_REPORT_ENABLED=true`."
    )


if __name__ == "__main__":
    main()
