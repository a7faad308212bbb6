"""
Streamlit UI for read-only pricing previews.

Features:
- Price book and destination selection
- Single-line quote with tax breakdown and resolution trace
- Price book entry browser
- Data directory validation report
"""
import streamlit as st
import pandas as pd
from datetime import datetime

from price_quoting.config.logging_config import configure_logging
from price_quoting.config.settings import get_settings
from price_quoting.data.repository import CsvPricingRepository
from price_quoting.data.validate_data import validate_data_dir
from price_quoting.engine import QuotingEngine, QuoteRequest, ShipTo


st.set_page_config(
    page_title="Pricing Preview",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine():
    """Get cached engine instance (it holds no pricing data, only the data directory)."""
    settings = get_settings()
    configure_logging(settings.log_level)
    return QuotingEngine(CsvPricingRepository(settings.data_dir), settings)


try:
    engine = get_engine()
    settings = engine.settings
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


# ============================================================================
# SIDEBAR: Price Book & Destination
# ============================================================================
with st.sidebar:
    st.header("Pricing Context")

    books = engine.repository.list_price_books()
    book_labels = ["(default book)"] + [
        f"{b.id} | {b.name} | {b.currency}{'' if b.is_active else ' (inactive)'}"
        for b in books
    ]
    selected_book = st.selectbox("Price Book", options=book_labels)
    price_book_id = None if selected_book == "(default book)" else selected_book.split(" | ")[0]

    st.divider()
    st.subheader("Ship To")
    country = st.text_input("Country", value="")
    region = st.text_input("Region", value="")
    postal = st.text_input("Postal Code", value="")


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Pricing Preview")
st.caption(f"Read-only | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3 = st.tabs(["Quote Preview", "Price Book Entries", "System"])


# ============================================================================
# TAB 1: QUOTE PREVIEW
# ============================================================================
with tab1:
    col1, col2, col3 = st.columns([2, 2, 1])
    with col1:
        product_id = st.text_input("Product ID", value="P100")
    with col2:
        variant_id = st.text_input("Variant ID (optional)", value="")
    with col3:
        quantity = st.number_input("Qty", min_value=0.0, value=1.0, step=1.0)

    request = QuoteRequest(
        product_id=product_id.strip(),
        variant_id=variant_id.strip() or None,
        price_book_id=price_book_id,
        quantity=str(quantity),
        ship_to=ShipTo.from_dict({"country": country, "region": region, "postal": postal}),
    )
    outcome = engine.quote(request)

    if not outcome.ok:
        st.info(f"No pricing available: {outcome.message}")
    else:
        result = outcome.result
        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Unit Price", f"{result.unit_price} {result.currency}")
        m2.metric("Subtotal", f"{result.line_subtotal}")
        m3.metric("Tax", f"{result.tax.tax_amount}", f"{result.tax.effective_rate_pct}%")
        m4.metric("Total", f"{result.line_total}")

        st.caption(
            f"**Basis:** {result.basis.value} | **Entry:** {result.entry_id} | **Unit:** {result.unit_id or '-'}"
        )
        if result.discount_pct is not None and result.list_unit_price is not None:
            st.markdown(f":green[**{result.discount_pct}% off list price {result.list_unit_price}**]")

        for warning in result.warnings:
            st.warning(warning)

        if result.tax.rules:
            st.dataframe(pd.DataFrame([{
                'Rule': r.rule_id,
                'Name': r.name,
                'Rate %': f"{r.rate_pct}",
                'Compound': r.compound,
                'Amount': f"{r.amount}",
            } for r in result.tax.rules]), use_container_width=True, hide_index=True)
        else:
            st.caption("No tax rules apply.")

        with st.expander("Resolution Details"):
            for t in result.trace:
                if t.value:
                    st.caption(f"**{t.step}**: {t.description} = `{t.value}`")
                else:
                    st.caption(f"**{t.step}**: {t.description}")


# ============================================================================
# TAB 2: PRICE BOOK ENTRIES
# ============================================================================
with tab2:
    book = (
        engine.repository.get_price_book(price_book_id) if price_book_id
        else engine.repository.get_default_price_book()
    )
    if book is None:
        st.info("No price book selected.")
    else:
        st.subheader(f"{book.name} ({book.currency}, {book.price_basis.value})")
        entries = [
            e for e in engine.repository.list_all_price_entries()
            if e.price_book_id == book.id
        ]
        st.dataframe(pd.DataFrame([{
            'Entry': e.id,
            'Product': e.product_id or "",
            'Variant': e.variant_id or "",
            'Tier': e.describe_range(),
            'Unit Price': f"{e.unit_price}",
            'Discount %': f"{e.discount_pct}" if e.discount_pct is not None else "",
        } for e in entries]), use_container_width=True, hide_index=True)


# ============================================================================
# TAB 3: SYSTEM INFO
# ============================================================================
with tab3:
    st.header("Data Status")
    report = validate_data_dir(settings.data_dir)

    c1, c2 = st.columns(2)
    c1.metric("Status", report["status"])
    c2.metric("Data Directory", settings.data_dir.name)

    st.dataframe(pd.DataFrame([
        {'File': name, 'Rows': stats['rows'], 'Valid': stats['valid'], 'Invalid': stats['invalid']}
        for name, stats in report["files"].items()
    ]), use_container_width=True, hide_index=True)

    for err in report["errors"]:
        st.error(err)
    for warning in report["warnings"]:
        st.warning(warning)
