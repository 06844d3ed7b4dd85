"""
Temporary Streamlit UI for Base Studio (test only).
Launch with: streamlit run ui_streamlit.py
"""
from __future__ import annotations
import streamlit as st

from bases.main import build_orchestrator


if "orchestrator" not in st.session_state:
    st.session_state.orchestrator = build_orchestrator()
orchestrator = st.session_state.orchestrator

st.title("Base Studio (Test UI)")

template_id = st.selectbox(
    "Start from a template",
    [""] + list(orchestrator.catalog.templates),
    format_func=lambda key: orchestrator.catalog.templates[key].label if key else "-",
)
if template_id and st.button("Use template"):
    st.session_state.instruction = orchestrator.select_template(template_id)

label = "Modify your base" if orchestrator.has_document else "Describe the base you want"
instruction = st.text_area(label, key="instruction")

col_run, col_reset = st.columns(2)
if col_run.button("Update Base" if orchestrator.has_document else "Generate Base"):
    if not instruction.strip():
        st.warning("Please enter an instruction.")
    else:
        result = orchestrator.submit(instruction)
        if result.get("error"):
            st.error(result["error"])
        else:
            st.success(f"Route: {result['route']}")
            if result.get("applied"):
                st.info("Applied: " + ", ".join(result["applied"]))
            if result.get("entities"):
                st.subheader("Extracted Entities")
                st.json(result["entities"])

if col_reset.button("Reset"):
    orchestrator.reset()

st.subheader("Document")
if orchestrator.document:
    st.code(orchestrator.document, language="yaml")
    st.download_button("Download .base", orchestrator.document, file_name="query.base")
else:
    st.write("No document yet.")
