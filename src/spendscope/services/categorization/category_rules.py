"""
Default category taxonomy and categorization rules.

Rules are an ordered, immutable table. Users can replace them with a JSON
file holding a list of rule objects, e.g.:

    [
        {"priority": 10, "categoryId": "restaurants", "type": "keyword",
         "pattern": "ZOMATO|SWIGGY", "field": "remarks"},
        {"priority": 5, "category_id": "rent", "type": "merchant",
         "pattern": "NOBROKER", "field": "merchant", "min_amount": 10000}
    ]
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from spendscope.services.categorization.models import CategorizationRule, RuleField, RuleType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Category:
    """A spending category."""
    id: str
    name: str
    parent_id: Optional[str] = None


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category("food", "Food & Dining"),
    Category("restaurants", "Restaurants", "food"),
    Category("groceries", "Groceries", "food"),
    Category("cafes", "Cafes", "food"),
    Category("housing", "Housing"),
    Category("rent", "Rent", "housing"),
    Category("utilities", "Utilities", "housing"),
    Category("transport", "Transportation"),
    Category("cabs", "Cab/Taxi", "transport"),
    Category("fuel", "Fuel", "transport"),
    Category("shopping", "Shopping"),
    Category("clothing", "Clothing", "shopping"),
    Category("electronics", "Electronics", "shopping"),
    Category("entertainment", "Entertainment"),
    Category("movies", "Movies", "entertainment"),
    Category("streaming", "Streaming", "entertainment"),
    Category("health", "Health"),
    Category("medical", "Medical", "health"),
    Category("fitness", "Fitness", "health"),
    Category("transfers", "Transfers"),
    Category("family", "Family", "transfers"),
    Category("friends", "Friends", "transfers"),
    Category("income", "Income"),
    Category("salary", "Salary", "income"),
    Category("refunds", "Refunds", "income"),
    Category("uncategorized", "Uncategorized"),
)

_CATEGORY_BY_ID: Dict[str, Category] = {c.id: c for c in DEFAULT_CATEGORIES}


def _keyword(priority: int, category_id: str, pattern: str) -> CategorizationRule:
    return CategorizationRule(priority, category_id, RuleType.KEYWORD, pattern, RuleField.REMARKS)


DEFAULT_RULES: Tuple[CategorizationRule, ...] = (
    # Income (deposits)
    CategorizationRule(1, "salary", RuleType.DEPOSIT,
                       "SALARY|PAYROLL|PAY CREDIT|SAL CREDIT|COMPANY CREDIT"),
    CategorizationRule(2, "refunds", RuleType.DEPOSIT,
                       "REFUND|REVERSAL|CASHBACK|REWARD|REIMBURSEMENT|FAILED TXN"),

    # Food
    _keyword(10, "restaurants",
             "ZOMATO|SWIGGY|EATSURE|FAASOS|BOX8|BURGER KING|KFC|MCDONALDS|DOMINOS|PIZZA HUT|SUBWAY"),
    _keyword(11, "groceries",
             "BIGBASKET|BLINKIT|ZEPTO|INSTAMART|GROCERY|SUPERMARKET|DMART|RELIANCE FRESH|MORE|"
             "SPENCERS|NATURES BASKET"),
    _keyword(12, "cafes",
             "STARBUCKS|CCD|CAFE COFFEE DAY|COSTA|BARISTA|CHAAYOS|BLUE TOKAI|THIRD WAVE|COFFEE"),
    _keyword(20, "restaurants", "RESTAURANT|EATERY|DHABA|BISTRO"),

    # Housing
    _keyword(30, "rent",
             "RENT|HOUSE RENT|NOBROKER|NESTAWAY|HOUSING|APARTMENT|LANDLORD|PROPERTY MANAGEMENT"),
    _keyword(31, "utilities",
             "ELECTRICITY|POWER BILL|WATER BILL|GAS BILL|UTILITY|BESCOM|BROADBAND|AIRTEL FIBER|"
             "JIO FIBER|ACT FIBERNET|DTH"),

    # Transportation
    _keyword(40, "fuel", "PETROL|DIESEL|FUEL|HPCL|INDIAN OIL|BHARAT PETROLEUM|SHELL"),
    _keyword(41, "transport",
             "METRO|RAILWAY|IRCTC|BUS|KSRTC|BMTC|REDBUS|AIRINDIA|OLA|UBER|RAPIDO|NAMMA YATRI|"
             "TAXI|CAB|AUTO RIDE|MERU|PORTER"),

    # Shopping
    _keyword(50, "clothing",
             "MYNTRA|AJIO|H&M|HM|ZARA|WESTSIDE|PANTALOONS|MAX FASHION|SHOPPERS STOP"),
    _keyword(51, "electronics",
             "CROMA|RELIANCE DIGITAL|VIJAY SALES|APPLE|SAMSUNG|MI STORE|ELECTRONICS"),
    _keyword(52, "shopping", "AMAZON|FLIPKART|NYKAA|MEESHO|SHOPPING"),

    # Entertainment
    _keyword(60, "streaming",
             "NETFLIX|PRIME VIDEO|HOTSTAR|DISNEY|SPOTIFY|YOUTUBE|APPLE MUSIC|JIO CINEMA|SONY LIV|ZEE5"),
    _keyword(61, "movies", "PVR|INOX|CINEPOLIS|BOOKMYSHOW|MOVIE|CINEMA"),

    # Health
    _keyword(70, "medical",
             "APOLLO|1MG|PHARMEASY|NETMEDS|HOSPITAL|CLINIC|MEDICAL|PHARMACY|PRACTO|LABS"),
    _keyword(71, "fitness", "CULT|FITNESS|GYM|YOGA|FITPASS|HEALTH CLUB"),

    # Transfers
    _keyword(80, "family", "FAMILY|MOTHER|FATHER|MOM|DAD|SISTER|BROTHER|HOME TRANSFER"),
    _keyword(81, "friends", "FRIEND|SETTLEMENT|SPLITWISE|PAYBACK"),
    _keyword(90, "transfers", "TRANSFER|SELF|SAVINGS|IMPS|NEFT|ATM|CASH WITHDRAWAL|CHEQUE|CHQ"),
)


def get_category(category_id: str) -> Category:
    """Look up a default category; unknown ids map to Uncategorized."""
    return _CATEGORY_BY_ID.get(category_id, _CATEGORY_BY_ID["uncategorized"])


def category_name(category_id: str) -> str:
    """Display name for a category id (the id itself when unknown)."""
    category = _CATEGORY_BY_ID.get(category_id)
    return category.name if category else category_id


def load_rules(rules_path: Union[str, Path]) -> Tuple[CategorizationRule, ...]:
    """
    Load rules from a JSON file.

    Accepts a list of rule objects or {"rules": [...]}. Rules are returned
    ordered by priority (file order kept for equal priorities).

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a rule has an unknown type or field
    """
    rules_path = Path(rules_path)
    with open(rules_path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("rules", [])

    rules = tuple(sorted((CategorizationRule.from_dict(item) for item in data), key=lambda r: r.priority))
    logger.info(f"Loaded {len(rules)} categorization rules from {rules_path}")
    return rules
