import base64
import os

import requests
import streamlit as st

API_BASE = os.getenv("THUMB_SERVICE_API_BASE", os.getenv("API_BASE", "http://localhost:8080")).rstrip("/")
PAGE_SIZE = int(os.getenv("THUMB_SERVICE_UI_PAGE_SIZE", "12"))
THUMB_WIDTH = 240


def _submit(url: str, hook: str) -> bool:
    body: dict[str, str] = {"url": url}
    if hook:
        body["hook"] = hook
    try:
        resp = requests.post(f"{API_BASE}/1/pdf/upload", json=body, timeout=30)
    except requests.RequestException as e:
        st.session_state["error"] = f"Failed to connect to API: {e}"
        return False
    if resp.status_code != 200:
        st.session_state["error"] = f"Submit failed: {resp.status_code} {resp.text}"
        return False
    return True


def _fetch_page(start: int, size: int) -> list[dict[str, object]] | None:
    try:
        resp = requests.get(
            f"{API_BASE}/1/pdf/thumbnails",
            params={"from": start, "size": size},
            timeout=30,
        )
    except requests.RequestException as e:
        st.session_state["error"] = f"Listing failed: {e}"
        return None
    if resp.status_code != 200:
        st.session_state["error"] = f"Listing error: {resp.status_code} {resp.text}"
        return None
    return resp.json()


def main() -> None:
    st.set_page_config(page_title="PDF Thumbnail Service", page_icon="🖼️", layout="wide")
    st.title("🖼️ PDF Thumbnail Service")
    st.caption(f"API base: {API_BASE}")
    st.session_state.pop("error", None)

    with st.form("submit", clear_on_submit=True):
        url = st.text_input("PDF url")
        hook = st.text_input("Webhook url (optional)")
        if st.form_submit_button("Submit", type="primary") and url:
            if _submit(url.strip(), hook.strip()):
                st.toast("Submitted; refresh the gallery in a moment", icon="✅")

    if "page" not in st.session_state:
        st.session_state["page"] = 0
    prev_col, label_col, next_col = st.columns([1, 2, 1])
    with prev_col:
        if st.button("Newer", disabled=st.session_state["page"] == 0):
            st.session_state["page"] -= 1
    with next_col:
        if st.button("Older"):
            st.session_state["page"] += 1
    with label_col:
        st.write(f"Page {st.session_state['page'] + 1}")

    docs = _fetch_page(st.session_state["page"] * PAGE_SIZE, PAGE_SIZE)
    if docs is not None:
        if not docs:
            st.info("No thumbnails on this page.")
        cols = st.columns(4)
        for i, doc in enumerate(docs):
            with cols[i % 4]:
                st.image(base64.b64decode(str(doc.get("thumbnail", ""))), width=THUMB_WIDTH)
                st.caption(f"{doc.get('url')}\n\n{doc.get('createdAt', '')}")

    if err := st.session_state.get("error"):
        st.error(err)


if __name__ == "__main__":
    main()
