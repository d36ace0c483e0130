"""Colour palette shared by the Flet views."""

BG = "#0D1117"
BG_CARD = "#161B22"
BG_INPUT = "#21262D"
FG = "#E6EDF3"
FG_DIM = "#8B949E"
ACCENT = "#FA2D48"
BORDER = "#30363D"
DANGER = "#F85149"
