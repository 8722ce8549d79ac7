"""CSS skin for the ODS / orbit trainer.

Classic grey dialog look (3D bevels, blue captions) on a wide canvas, since
the deflection view and the orbit dashboard need the horizontal space.
"""

from __future__ import annotations

BEVEL_OUT = (
    "border-top:2px solid #ffffff !important;"
    "border-left:2px solid #ffffff !important;"
    "border-right:2px solid #404040 !important;"
    "border-bottom:2px solid #404040 !important;"
)

BEVEL_IN = (
    "border-top:2px solid #404040 !important;"
    "border-left:2px solid #404040 !important;"
    "border-right:2px solid #ffffff !important;"
    "border-bottom:2px solid #ffffff !important;"
)


APP_CSS = (
    r"""
<style>
/* ---- Hide Streamlit chrome ---- */
[data-testid="stHeader"], [data-testid="stToolbar"], #MainMenu { display:none !important; }
footer { visibility:hidden; }

/* Replaced plots fade on reruns; during a play burst that reads as flicker. */
div[data-testid="stAppViewContainer"] *,
div[data-testid="stAppViewContainer"] *::before,
div[data-testid="stAppViewContainer"] *::after{
  transition:none !important;
  animation:none !important;
}

html, body, [data-testid="stAppViewContainer"]{
  background-color:#2b2b2b;
  font-family: Tahoma, "Trebuchet MS", Verdana, Arial, sans-serif;
  font-size:14px;
}

.block-container{
  padding:0 !important;
  max-width:1280px !important;
  margin:0 auto !important;
}

[data-testid="stAppViewContainer"] .block-container{
  background:#c0c0c0;
  box-shadow:
    0 0 0 2px rgba(255,255,255,0.25),
    0 0 0 6px rgba(0,0,0,0.55);
}

/* ---- Shell (title/status) ---- */
.odsim-shell-titlebar{
  height:26px;
  background: linear-gradient(90deg, #0a246a 0%, #3a6ea5 100%);
  color:#ffffff;
  display:flex;
  align-items:center;
  justify-content:space-between;
  padding:0 8px;
  box-sizing:border-box;
  font-weight:900;
}

.odsim-shell-statusbar{
  height:22px;
  background:#d4d0c8;
  border-top:2px solid #808080;
  display:flex;
  align-items:center;
  gap:18px;
  padding:0 8px;
  box-sizing:border-box;
  font-size:12px;
  font-weight:700;
}

/* ---- Desktop area (single window) ---- */
.odsim-desktop-marker{ display:none; }

@supports selector(:has(*)) {
  div[data-testid="stVerticalBlockBorderWrapper"]:has(.odsim-desktop-marker){
    background:#c0c0c0 !important;
    border:0 !important;
    __BEVEL_OUT__
    padding:8px !important;
    box-sizing:border-box !important;
  }
}

/* Common window skin */
.odsim-win-caption{
  height:22px;
  display:flex;
  align-items:center;
  justify-content:space-between;
  padding:0 6px;
  box-sizing:border-box;
  font-weight:900;
  font-size:13px;
  color:#fff;
}
.odsim-win-caption.active{ background: linear-gradient(90deg, #0a246a 0%, #3a6ea5 100%); }
.odsim-win-caption.inactive{ background:#7f7f7f; }

.odsim-closebox{
  width:18px;
  height:16px;
  background:#d4d0c8;
  __BEVEL_OUT__
  display:flex;
  align-items:center;
  justify-content:center;
  color:#000;
  font-weight:900;
  font-size:12px;
  line-height:12px;
}

div[data-testid="stVerticalBlockBorderWrapper"] [data-testid="stVerticalBlock"]{ gap:0.25rem; }
div[data-testid="stVerticalBlockBorderWrapper"] [data-testid="stHorizontalBlock"]{ gap:0.5rem; }

/* ---- Widgets (classic 3D) ---- */
.stButton > button, .stDownloadButton > button{
  background:#c0c0c0 !important;
  color:#000 !important;
  __BEVEL_OUT__
  border-radius:0px !important;
  font-weight:900 !important;
  padding:6px 12px !important;
}
.stButton > button:active, .stDownloadButton > button:active{
  __BEVEL_IN__
}

div[data-testid="stNumberInput"] input,
div[data-testid="stTextInput"] input,
div[data-testid="stSelectbox"] div[role="combobox"]{
  border-radius:0px !important;
  __BEVEL_IN__
  background:#ffffff !important;
}

div[data-testid="stTextArea"] textarea{
  border-radius:0px !important;
  __BEVEL_IN__
  background:#ffffff !important;
  font-family:"Courier New", Consolas, monospace !important;
  font-size:13px !important;
  line-height:1.15 !important;
}

/* Mono text blocks (summaries, readouts) */
.odsim-mono{
  font-family: "Courier New", Consolas, monospace;
  font-size:13px;
  font-weight:700;
  background:#ffffff;
  __BEVEL_IN__
  padding:8px;
  white-space:pre;
  overflow-x:auto;
}

.odsim-label{ font-weight:900; }
.odsim-ref{ color:#1d4ed8; font-weight:900; }

.odsim-health{ font-weight:900; padding:2px 8px; color:#fff; display:inline-block; }
.odsim-health.Good{ background:#15803d; }
.odsim-health.Satisfactory{ background:#ca8a04; }
.odsim-health.Unsatisfactory{ background:#ea580c; }
.odsim-health.Unacceptable{ background:#b91c1c; }

</style>
"""
    .replace("__BEVEL_OUT__", BEVEL_OUT)
    .replace("__BEVEL_IN__", BEVEL_IN)
)
