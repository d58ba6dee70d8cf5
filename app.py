"""
ProxyHost - Streamlit Frontend

A simple frontend for uploading and generating hosted sites.

FEATURES:
- Tenant id input (sent as X-Tenant-Id header)
- HTML file upload with optional site name
- AI page generation from a prompt, with one-click publishing
- Links to the served site

Run with:
    streamlit run app.py
"""

import os

import streamlit as st
import requests

# =============================================================================
# PAGE CONFIGURATION
# =============================================================================

st.set_page_config(
    page_title="ProxyHost",
    page_icon="🌐",
    layout="centered"
)

# =============================================================================
# CONSTANTS
# =============================================================================

API_BASE_URL = os.getenv("PROXYHOST_API_URL", "http://localhost:8000")
TENANT_HEADER = "X-Tenant-Id"
REQUEST_TIMEOUT = 60


def publish(tenant_id: str, filename: str, content: bytes, site_name: str):
    """Upload an HTML document and report the resulting site URL."""
    try:
        response = requests.post(
            f"{API_BASE_URL}/api/upload",
            headers={TENANT_HEADER: tenant_id},
            files={"file": (filename, content, "text/html")},
            data={"siteName": site_name} if site_name else None,
            timeout=REQUEST_TIMEOUT
        )
    except requests.exceptions.ConnectionError:
        st.error("🔌 **Connection Error:** Cannot connect to the API server.")
        st.caption(f"Make sure the FastAPI backend is running on {API_BASE_URL}")
        return
    except requests.exceptions.Timeout:
        st.error("⏱️ **Timeout:** The upload took too long.")
        return

    if response.status_code == 200:
        result = response.json()
        site_url = f"{API_BASE_URL}{result['url']}"
        st.success("✅ Site published!")
        st.markdown(f"**Site ID:** `{result['siteId']}`")
        st.markdown(f"**URL:** [{site_url}]({site_url})")
    else:
        st.error(f"❌ **Error:** {response.status_code}")
        try:
            st.caption(f"Details: {response.json().get('detail', response.text)}")
        except ValueError:
            st.caption(f"Response: {response.text}")


# =============================================================================
# SIDEBAR - TENANT
# =============================================================================

st.sidebar.title("👤 Tenant")
st.sidebar.markdown("---")

tenant_id = st.sidebar.text_input(
    "Tenant ID:",
    value="demo-user",
    help="Sites are stored and served under this identifier"
)

# =============================================================================
# MAIN CONTENT
# =============================================================================

st.title("🌐 ProxyHost")
st.markdown("""
Upload an HTML page, or let the AI write one, and get it hosted at
`/site/<tenant>/<site>/`.
""")

st.markdown("---")

# =============================================================================
# UPLOAD
# =============================================================================

st.markdown("### 📤 Upload a site")

uploaded = st.file_uploader("HTML file:", type=["html", "htm"])
site_name = st.text_input("Site name:", placeholder="my-site")

if st.button("Upload", type="primary"):
    if not tenant_id.strip():
        st.error("❌ Please enter a tenant ID in the sidebar.")
    elif uploaded is None:
        st.error("❌ Please choose an HTML file.")
    else:
        with st.spinner("Uploading..."):
            publish(tenant_id.strip(), uploaded.name, uploaded.getvalue(), site_name.strip())

st.markdown("---")

# =============================================================================
# AI GENERATION
# =============================================================================

st.markdown("### ✨ Generate a site")

prompt = st.text_area(
    "Describe your page:",
    placeholder="A landing page for a neighbourhood bakery",
    height=100
)

if st.button("Generate"):
    if not tenant_id.strip():
        st.error("❌ Please enter a tenant ID in the sidebar.")
    elif not prompt.strip():
        st.error("❌ Please enter a prompt.")
    else:
        with st.spinner("Generating..."):
            try:
                response = requests.post(
                    f"{API_BASE_URL}/api/generate-site",
                    headers={TENANT_HEADER: tenant_id.strip()},
                    json={"prompt": prompt.strip()},
                    timeout=REQUEST_TIMEOUT
                )
                if response.status_code == 200:
                    st.session_state["generated_html"] = response.json()["html"]
                else:
                    st.error(f"❌ **Error:** {response.status_code}")
            except requests.exceptions.ConnectionError:
                st.error("🔌 **Connection Error:** Cannot connect to the API server.")
            except requests.exceptions.Timeout:
                st.error("⏱️ **Timeout:** The request took too long.")

generated_html = st.session_state.get("generated_html")
if generated_html:
    st.caption(f"Generated HTML length: {len(generated_html)}")
    st.code(generated_html, language="html")
    if st.button("Publish generated page"):
        publish(tenant_id.strip(), "index.html", generated_html.encode("utf-8"), site_name.strip())

# =============================================================================
# FOOTER
# =============================================================================

st.markdown("---")
st.markdown("""
<div style='text-align: center; color: gray; font-size: 0.8em;'>
    ProxyHost | Static sites served per tenant
</div>
""", unsafe_allow_html=True)
