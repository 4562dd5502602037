"""Static categorization tables.

Display categories are an open set: the canonical names below are what the
built-in rules produce, but user corrections and override rules may introduce
any other name. Everything downstream (budgets, analytics, overrides) compares
categories by plain string equality.
"""

from __future__ import annotations

import re

INCOME = "Income"
OTHER = "Other"

CANONICAL_CATEGORIES: tuple[str, ...] = (
    "Income",
    "Housing",
    "Mortgage",
    "Home Improvement",
    "Bills & Utilities",
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Healthcare",
    "Financial",
    "Loan Repayment",
    "Insurance",
    "Cash & ATM",
    "Travel",
    "Personal Care",
    "Government",
    "Other",
)

MAX_CATEGORY_LENGTH = 100

# Provider category tokens that indicate an inflow is income.
INCOME_PROVIDER_TOKENS: frozenset[str] = frozenset({"Payroll", "Deposit"})

INCOME_KEYWORDS = re.compile(
    r"\b(?:payroll|salary|direct\s+dep(?:osit)?|income|wages?)\b", re.IGNORECASE
)


def _p(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


# Ordering matters: earlier matches win. Specific merchants come before the
# generic keywords of the same vertical, and narrow verticals (mortgage, ATM)
# before broad ones that share words with them.
MERCHANT_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Housing
    (_p(r"\bmortgage\b|\bhome loan\b|wells fargo home|chase mortgage"), "Mortgage"),
    (_p(r"\brent\b|\bapartments?\b|property mgmt|property management|\bleasing\b"), "Housing"),
    (_p(r"home depot|\blowe'?s\b|\bhardware\b|ace hardware|\brenovation"), "Home Improvement"),

    # Cash & ATM before financial (an ATM fee is still an ATM movement)
    (_p(r"\batm\b|cash withdrawal"), "Cash & ATM"),

    # Utilities
    (_p(r"\belectric\b|\bpower\b|\bpg&?e\b|con edison|duke energy"), "Bills & Utilities"),
    (_p(r"gas company|natural gas|nicor gas"), "Bills & Utilities"),
    (_p(r"\bwater\b|\bsewer\b|waste management"), "Bills & Utilities"),
    (_p(r"comcast|verizon|\bat&?t\b|spectrum|xfinity|\binternet\b|\bwifi\b"), "Bills & Utilities"),
    (_p(r"t-?mobile|\bsprint\b|\bphone\b|\bmobile\b|\bcell\b"), "Bills & Utilities"),

    # Food & Dining
    (_p(r"starbucks|\bcoffee\b|dunkin|caribou"), "Food & Dining"),
    (_p(r"mcdonald'?s|burger king|taco bell|\bsubway\b|chipotle|\bpizza\b"), "Food & Dining"),
    (_p(r"whole foods|trader joe|safeway|kroger|target.*grocery|supermarket|\bgrocer"), "Food & Dining"),
    (_p(r"restaurant|\bdining\b|bistro|\bcafe\b|\bgrill\b"), "Food & Dining"),

    # Transportation
    (_p(r"\bshell\b|exxon|chevron|\bbp\b|\bmobil\b|gas station"), "Transportation"),
    (_p(r"\buber\b|\blyft\b|\btaxi\b|rideshare"), "Transportation"),
    (_p(r"\bparking\b|\bmeter\b|\bgarage\b|\btolls?\b"), "Transportation"),

    # Travel
    (_p(r"airlines?\b|\bairbnb\b|expedia|\bhotels?\b|marriott|hilton|delta air|united air"), "Travel"),

    # Shopping
    (_p(r"amazon|\bebay\b|walmart|\btarget\b|costco"), "Shopping"),
    (_p(r"\bnike\b|adidas|clothing|apparel|fashion"), "Shopping"),

    # Entertainment
    (_p(r"netflix|spotify|\bhulu\b|disney|apple music"), "Entertainment"),
    (_p(r"\bmovies?\b|theater|theatre|cinema|\bamc\b|\bregal\b"), "Entertainment"),

    # Healthcare
    (_p(r"pharmacy|\bcvs\b|walgreens|rite aid|\bdoctor\b|\bmedical\b|hospital|\bdental\b"), "Healthcare"),

    # Personal care
    (_p(r"\bsalon\b|barber|\bspa\b|\bgym\b|fitness"), "Personal Care"),

    # Government
    (_p(r"\birs\b|\bdmv\b|treasury|\b(?:city|county|state) of\b"), "Government"),

    # Insurance before financial ("insurance premium payment")
    (_p(r"insurance"), "Insurance"),

    # Financial
    (_p(r"loan payment|credit card|bank fee|\binterest\b"), "Financial"),
]

# Primary provider category -> display category.
PROVIDER_PRIMARY_MAP: dict[str, str] = {
    # Income
    "Deposit": "Income",
    "Payroll": "Income",
    "Income": "Income",
    # Housing
    "Payment": "Financial",
    "Rent And Utilities": "Bills & Utilities",
    # Bills & Utilities
    "Service": "Bills & Utilities",
    # Food & Dining
    "Food and Drink": "Food & Dining",
    # Transportation
    "Transportation": "Transportation",
    # Shopping
    "Shops": "Shopping",
    "General Merchandise": "Shopping",
    # Entertainment
    "Recreation": "Entertainment",
    "Entertainment": "Entertainment",
    # Healthcare
    "Healthcare": "Healthcare",
    "Medical": "Healthcare",
    # Financial
    "Transfer": "Financial",
    "Bank Fees": "Financial",
    "Interest": "Financial",
    "Tax": "Financial",
    # Insurance
    "Insurance": "Insurance",
    # Travel
    "Travel": "Travel",
    # Personal Care
    "Personal Care": "Personal Care",
    # Government
    "Government and Non-Profit": "Government",
    # Other
    "Other": "Other",
}

# Secondary provider category -> display category, consulted only when the
# primary is not in PROVIDER_PRIMARY_MAP.
PROVIDER_SECONDARY_MAP: dict[str, str] = {
    # Transportation
    "Gas Stations": "Transportation",
    "Parking": "Transportation",
    "Public Transportation": "Transportation",
    "Ride Share": "Transportation",
    "Taxis": "Transportation",
    # Food & Dining
    "Groceries": "Food & Dining",
    "Restaurants": "Food & Dining",
    "Fast Food": "Food & Dining",
    "Coffee": "Food & Dining",
    "Bars": "Food & Dining",
    # Bills & Utilities
    "Utilities": "Bills & Utilities",
    "Telecommunication Services": "Bills & Utilities",
    "Cable": "Bills & Utilities",
    "Internet": "Bills & Utilities",
    "Mobile Phone": "Bills & Utilities",
    # Housing
    "Rent": "Housing",
    "Mortgage": "Mortgage",
    "Home Improvement": "Home Improvement",
    # Loans and cards
    "Credit Card": "Financial",
    "Student Loan": "Loan Repayment",
    "Personal Loan": "Loan Repayment",
    "Auto Loan": "Loan Repayment",
    # Insurance
    "Life Insurance": "Insurance",
    "Auto Insurance": "Insurance",
    "Health Insurance": "Insurance",
    "Home Insurance": "Insurance",
    # Shopping
    "Clothing and Accessories": "Shopping",
    "Electronics": "Shopping",
    "General Merchandise": "Shopping",
    "Online Marketplaces": "Shopping",
    # Personal Care
    "Gym and Fitness": "Personal Care",
    "Hair and Beauty": "Personal Care",
    # Entertainment
    "Movies and DVDs": "Entertainment",
    "Music and Audio": "Entertainment",
    "TV and Movies": "Entertainment",
    "Video Games": "Entertainment",
    # Travel
    "Hotels": "Travel",
    "Airlines and Aviation Services": "Travel",
    # Healthcare
    "Pharmacy": "Healthcare",
    "Dentist": "Healthcare",
    "Doctor": "Healthcare",
    "Hospital": "Healthcare",
    # Cash
    "ATM": "Cash & ATM",
    "Check": "Cash & ATM",
}

# (primary, secondary) -> display category, for the primaries whose meaning
# depends on the second level. Unmatched secondaries fall back to
# PAIR_PRIMARY_DEFAULTS.
PROVIDER_PAIR_RULES: dict[tuple[str, str], str] = {
    ("Payment", "Rent"): "Housing",
    ("Payment", "Mortgage"): "Mortgage",
    ("Payment", "Credit Card"): "Financial",
    ("Payment", "Loan"): "Loan Repayment",
    ("Service", "Utilities"): "Bills & Utilities",
    ("Service", "Telecommunication Services"): "Bills & Utilities",
    ("Service", "Cable"): "Bills & Utilities",
    ("Service", "Internet"): "Bills & Utilities",
    ("Transfer", "Payroll"): "Income",
    ("Transfer", "Deposit"): "Income",
}

PAIR_PRIMARY_DEFAULTS: dict[str, str] = {
    "Payment": "Financial",
    "Service": "Bills & Utilities",
    "Transfer": "Financial",
}

# Keyword seeds for the suggestion index (substring matches, lower-case).
COMMON_KEYWORDS: dict[str, str] = {
    # Food & Dining
    "mcdonalds": "Food & Dining",
    "starbucks": "Food & Dining",
    "subway": "Food & Dining",
    "pizza": "Food & Dining",
    "restaurant": "Food & Dining",
    "cafe": "Food & Dining",
    "coffee": "Food & Dining",
    "dining": "Food & Dining",
    "food": "Food & Dining",
    "grocery": "Food & Dining",
    "supermarket": "Food & Dining",
    # Shopping
    "walmart": "Shopping",
    "target": "Shopping",
    "amazon": "Shopping",
    # Transportation
    "uber": "Transportation",
    "lyft": "Transportation",
    "gas": "Transportation",
    "shell": "Transportation",
    "exxon": "Transportation",
    "chevron": "Transportation",
    "parking": "Transportation",
    "toll": "Transportation",
    "metro": "Transportation",
    "bus": "Transportation",
    "taxi": "Transportation",
    # Entertainment
    "netflix": "Entertainment",
    "spotify": "Entertainment",
    "hulu": "Entertainment",
    "disney": "Entertainment",
    "movie": "Entertainment",
    "theater": "Entertainment",
    "cinema": "Entertainment",
    # Personal Care
    "gym": "Personal Care",
    "fitness": "Personal Care",
    "salon": "Personal Care",
    # Bills & Utilities
    "electric": "Bills & Utilities",
    "gas company": "Bills & Utilities",
    "water": "Bills & Utilities",
    "internet": "Bills & Utilities",
    "cable": "Bills & Utilities",
    "phone": "Bills & Utilities",
    "verizon": "Bills & Utilities",
    "tmobile": "Bills & Utilities",
    "comcast": "Bills & Utilities",
    # Healthcare
    "pharmacy": "Healthcare",
    "cvs": "Healthcare",
    "walgreens": "Healthcare",
    "doctor": "Healthcare",
    "hospital": "Healthcare",
    "medical": "Healthcare",
    "dental": "Healthcare",
    "vision": "Healthcare",
    # Financial
    "bank": "Financial",
    "credit": "Financial",
    "loan": "Financial",
    "investment": "Financial",
    "atm": "Cash & ATM",
    "fee": "Financial",
    "insurance": "Insurance",
    # Travel
    "hotel": "Travel",
    "airline": "Travel",
    "airport": "Travel",
    "flight": "Travel",
    "booking": "Travel",
    "expedia": "Travel",
    "airbnb": "Travel",
}

# Last-resort text heuristics for the suggestion path.
HEURISTIC_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("coffee", "cafe"), "Food & Dining"),
    (("subscription", "monthly"), "Bills & Utilities"),
    (("rent", "apartment"), "Housing"),
]


def normalize_category(category: str | None) -> str:
    """Trim and collapse whitespace in a user-supplied category name.

    Case is preserved: "Coffee Shops" and "coffee shops" are different
    categories, the same way the rest of the pipeline treats them.
    """
    return re.sub(r"\s+", " ", (category or "").strip())


def is_valid_category(category: str | None) -> bool:
    """Open-set validation: any non-empty name up to MAX_CATEGORY_LENGTH."""
    normalized = normalize_category(category)
    return 0 < len(normalized) <= MAX_CATEGORY_LENGTH
