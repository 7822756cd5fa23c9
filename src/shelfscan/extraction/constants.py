from __future__ import annotations

# Canonical line classification kinds.
KIND_HEADER = "HEADER"
KIND_SKU_ONLY = "SKU_ONLY"
KIND_UPC_ONLY = "UPC_ONLY"
KIND_NAME_FRAGMENT = "NAME_FRAGMENT"
KIND_COMPOSITE_ROW = "COMPOSITE_ROW"
KIND_NOISE = "NOISE"

# Kinds that carry no extracted data.
UNINFORMATIVE_KINDS = frozenset({KIND_HEADER, KIND_NOISE})

MIN_LINE_LENGTH = 5
MIN_NAME_LENGTH = 5
MIN_LETTER_RUN = 5
MAX_RECORDS = 100
