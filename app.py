import logging

import streamlit as st

from odsim.config import APP_TITLE, LOG_LEVEL
from odsim.styles import APP_CSS
from odsim.ui import init_state, render_desktop, status_text


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    st.set_page_config(page_title=APP_TITLE, layout="wide")
    init_state()

    st.markdown(APP_CSS, unsafe_allow_html=True)

    st.markdown(
        "<div class='odsim-shell-titlebar'>"
        f"<div>{APP_TITLE}</div>"
        "</div>",
        unsafe_allow_html=True,
    )

    # Above the desktop: a playing burst reruns before reaching the end of the page.
    st.markdown(f"<div class='odsim-shell-statusbar'>{status_text()}</div>", unsafe_allow_html=True)

    render_desktop()


if __name__ == "__main__":
    main()
