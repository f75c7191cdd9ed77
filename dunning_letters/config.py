import os
from pathlib import Path

# Output location for generated letters and their metadata sidecars.
DEFAULT_OUTPUT_DIR = Path(__file__).resolve().parent.parent / "letters"
ENV_OUTPUT_DIR = "DUNNING_OUTPUT_DIR"
ENV_LOG_LEVEL = "DUNNING_LOG_LEVEL"

# Remote logo locations. Unset means the logo is simply left out.
ENV_LOGO_MAIN_URL = "DUNNING_LOGO_MAIN_URL"
ENV_LOGO_LEFT_URL = "DUNNING_LOGO_LEFT_URL"
ENV_LOGO_RIGHT_URL = "DUNNING_LOGO_RIGHT_URL"

# ---- Page geometry (A4 portrait, millimetres)
PAGE_FORMAT = "A4"
MARGIN = 20.0
CONTENT_TOP = MARGIN + 20
CONTINUATION_TOP = 40.0
TABLE_CONTINUATION_TOP = 35.0
LINE_HEIGHT = 4.0

# ---- Ledger table
MAX_ROWS_PER_PAGE = 29
TABLE_ROW_HEIGHT = 4.0
TABLE_CONTINUATION_LINE_HEIGHT = 3.0
TABLE_MAX_CONTINUATION_LINES = 2
TABLE_FOOTER_RESERVE = 25.0
TABLE_SUMMARY_RESERVE = 15.0
TABLE_COLUMN_GAP = 2.0
TABLE_COLUMN_SHARES = (0.12, 0.50, 0.12, 0.12, 0.14)
TABLE_HEADERS = ("Zeitraum", "Kostenart", "Soll €", "Ist €", "Differenz €")

# ---- Banking block
BANK_SPACE_RESERVE = 40.0
BANK_BOTTOM_RESERVE = 20.0
BANK_ROW_HEIGHT = 4.0

# ---- Colours
TEXT_COLOR = (40, 44, 52)
MUTED_COLOR = (100, 100, 100)
FOOTER_COLOR = (120, 120, 120)
NEGATIVE_COLOR = (200, 0, 0)
POSITIVE_COLOR = (0, 150, 0)
PANEL_FILL = (245, 245, 245)
PANEL_BORDER = (200, 200, 200)
RULE_COLOR = (180, 180, 180)

# ---- Company block shown in the sender line, closing and footer
COMPANY = {
    "name": "Muster Hausverwaltung GmbH",
    "street": "Musterstraße 1",
    "city": "12345 Musterstadt",
    "phone": "0123 456789-0",
    "email": "info@muster-hausverwaltung.de",
    "web": "www.muster-hausverwaltung.de",
    "register": "Amtsgericht Musterstadt HRB 12345",
    "managing_director": "Geschäftsführer: Max Mustermann",
}

FOOTER_LINES = (
    f"{COMPANY['name']} | {COMPANY['street']} | {COMPANY['city']}",
    f"Tel. {COMPANY['phone']} | {COMPANY['email']} | {COMPANY['web']}",
    f"{COMPANY['register']} | {COMPANY['managing_director']}",
)
FOOTER_FONT_SIZE = 8
FOOTER_LINE_SPACING = 1.2
FOOTER_BOTTOM_MARGIN = 10.0
PT_TO_MM = 0.353

# ---- Logos: fetch url, pixel box for downscaling, JPEG quality, placement box in mm
LOGO_SPECS = {
    "main": {
        "url": os.getenv(ENV_LOGO_MAIN_URL, ""),
        "max_px": (300, 200),
        "quality": 30,
        "max_mm": (60.0, 20.0),
        "top": 10.0,
    },
    "left": {
        "url": os.getenv(ENV_LOGO_LEFT_URL, ""),
        "max_px": (250, 150),
        "quality": 80,
        "max_mm": (30.0, 10.0),
        "side_margin": 15.0,
        "offset": -3.0,
    },
    "right": {
        "url": os.getenv(ENV_LOGO_RIGHT_URL, ""),
        "max_px": (250, 150),
        "quality": 80,
        "max_mm": (35.0, 35.0),
        "side_margin": 0.0,
        "offset": -6.0,
    },
}
ASSET_TIMEOUT = 15
ASSET_USER_AGENT = "Mozilla/5.0"

# ---- Fees
MAX_FEE = "999.99"
DEFAULT_CSV_FEE = "10.00"

# ---- Batch pacing between documents, in seconds
BATCH_DELAY = 0.05

# ---- Mail hand-off records expire after this many seconds
MAIL_HANDOFF_TTL = 5 * 60

# ---- Fallback texts
UNKNOWN_TENANT = "Unbekannter Mieter"
UNKNOWN_STREET = "Unbekannte Straße"
UNKNOWN_CITY = "Unbekannter Ort"
BANK_NOT_FOUND = "Bank not found"
GENERIC_SALUTATION = "Sehr geehrte Damen und Herren,"
