import os

import requests
import streamlit as st

API_BASE = os.getenv("PDF_SERVICE_API_BASE", os.getenv("API_BASE", "http://localhost:8081")).rstrip("/")
REQUEST_TIMEOUT_SEC = float(os.getenv("PDF_SERVICE_UI_TIMEOUT", "120"))

SAMPLE_HTML = "<html><body><h1>Hello</h1><p>Rendered by headless Chromium.</p></body></html>"


def _reset_state():
    for key in ["pdf_bytes", "error"]:
        if key in st.session_state:
            del st.session_state[key]


def _check_health() -> str:
    try:
        resp = requests.get(f"{API_BASE}/health", timeout=5)
    except requests.RequestException as e:
        return f"unreachable ({e})"
    if resp.status_code != 200:
        return f"unhealthy ({resp.status_code})"
    try:
        return str(resp.json().get("status", "unknown"))
    except ValueError:
        return "unknown"


def _convert(html: str, title: str | None) -> bytes | None:
    payload: dict[str, str] = {"html": html}
    if title:
        payload["title"] = title
    try:
        resp = requests.post(f"{API_BASE}/convert", json=payload, timeout=REQUEST_TIMEOUT_SEC)
    except requests.RequestException as e:
        st.session_state["error"] = f"Failed to connect to API: {e}"
        return None
    if resp.status_code != 200:
        st.session_state["error"] = f"Conversion failed: {resp.status_code} {resp.text}"
        return None
    return resp.content


def main() -> None:
    st.set_page_config(page_title="HTML to PDF Service", page_icon="📄", layout="centered")
    st.title("📄 HTML to PDF Service")
    st.caption(f"API base: {API_BASE} · status: {_check_health()}")

    if st.button("Restart", type="secondary"):
        _reset_state()
        st.rerun()

    title = st.text_input("Title (optional)")
    html = st.text_area("HTML", value=SAMPLE_HTML, height=300)

    if st.button("Convert to PDF", type="primary", disabled=not html.strip()):
        _reset_state()
        with st.spinner("Rendering..."):
            pdf = _convert(html, title or None)
        if pdf is not None:
            st.session_state["pdf_bytes"] = pdf
            st.toast("PDF ready", icon="✅")

    if "pdf_bytes" in st.session_state:
        st.success(f"Conversion complete! ({len(st.session_state['pdf_bytes'])} bytes)")
        st.download_button(
            label="Download PDF",
            data=st.session_state["pdf_bytes"],
            file_name="document.pdf",
            mime="application/pdf",
        )

    if err := st.session_state.get("error"):
        st.error(err)


if __name__ == "__main__":
    main()
