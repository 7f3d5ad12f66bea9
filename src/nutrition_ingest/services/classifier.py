"""Category and aisle inference for ingredients."""

from dataclasses import dataclass

DEFAULT_CATEGORY = "Snacks"
DEFAULT_AISLE = "Other"

# Source category strings (FDC food categories, WWEIA categories and branded
# food categories) onto the application's categories.
CATEGORY_TABLE: dict[str, str] = {
    "Dairy and Egg Products": "Dairy",
    "Spices and Herbs": "Spices & Herbs",
    "Baby Foods": "Baby Food",
    "Fats and Oils": "Fats & Oils",
    "Poultry Products": "Meat & Poultry",
    "Soups, Sauces, and Gravies": "Soups & Sauces",
    "Sausages and Luncheon Meats": "Meat & Poultry",
    "Breakfast Cereals": "Grains & Cereals",
    "Fruits and Fruit Juices": "Fruits",
    "Pork Products": "Meat & Poultry",
    "Vegetables and Vegetable Products": "Vegetables",
    "Nut and Seed Products": "Nuts & Seeds",
    "Beef Products": "Meat & Poultry",
    "Beverages": "Beverages",
    "Finfish and Shellfish Products": "Seafood",
    "Legumes and Legume Products": "Legumes",
    "Lamb, Veal, and Game Products": "Meat & Poultry",
    "Baked Products": "Baked Goods",
    "Sweets": "Sweets & Desserts",
    "Cereal Grains and Pasta": "Grains & Cereals",
    "Fast Foods": "Fast Food",
    "Meals, Entrees, and Side Dishes": "Meals & Entrees",
    "Snacks": "Snacks",
    "American Indian/Alaska Native Foods": "Ethnic Foods",
    "Ethnic Foods": "Ethnic Foods",
    "Restaurant Foods": "Restaurant Foods",
    "Human milk": "Dairy",
    "Milk, reduced fat": "Dairy",
    "Milk, whole": "Dairy",
    "Vegetable and Lentil Mixes": "Vegetables",
    "Chewing Gum & Mints": "Snacks",
    "Crusts & Dough": "Baked Goods",
    "Cake, Cookie & Cupcake Mixes": "Baked Goods",
    "Cereal": "Grains & Cereals",
    "Rice": "Grains & Cereals",
}

AISLE_TABLE: dict[str, str] = {
    "Dairy": "Dairy & Eggs",
    "Meat & Poultry": "Meat & Seafood",
    "Seafood": "Meat & Seafood",
    "Vegetables": "Produce",
    "Fruits": "Produce",
    "Grains & Cereals": "Pantry",
    "Nuts & Seeds": "Pantry",
    "Legumes": "Pantry",
    "Fats & Oils": "Pantry",
    "Spices & Herbs": "Pantry",
    "Soups & Sauces": "Pantry",
    "Beverages": "Beverages",
    "Baked Goods": "Bakery",
    "Sweets & Desserts": "Bakery",
    "Snacks": "Snacks",
    "Fast Food": "Frozen",
    "Meals & Entrees": "Frozen",
    "Restaurant Foods": "Frozen",
    "Ethnic Foods": "International",
    "Baby Food": "Baby",
}

# Checked in order against the lower-cased description.
_KEYWORD_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Dairy", ("milk", "cheese", "yogurt")),
    ("Meat & Poultry", ("chicken", "beef", "pork", "turkey")),
    ("Fruits", ("apple", "banana", "orange", "berry")),
    ("Vegetables", ("broccoli", "carrot", "spinach", "tomato")),
    ("Grains & Cereals", ("bread", "pasta", "rice", "cereal")),
    ("Seafood", ("salmon", "tuna", "shrimp", "fish")),
)


@dataclass(frozen=True)
class Classification:
    """Category and shopping aisle for an ingredient."""

    category: str
    aisle: str


def classify(
    category_text: str | None, description: str | None = None
) -> Classification:
    """Infer category and aisle; unknown inputs fall into the default bucket."""
    category = _category_for(category_text, description)
    return Classification(category=category, aisle=aisle_for(category))


def aisle_for(category: str) -> str:
    return AISLE_TABLE.get(category, DEFAULT_AISLE)


def _category_for(category_text: str | None, description: str | None) -> str:
    if category_text:
        mapped = CATEGORY_TABLE.get(category_text.strip())
        if mapped:
            return mapped
    if description:
        lowered = description.lower()
        for category, keywords in _KEYWORD_CATEGORIES:
            if any(keyword in lowered for keyword in keywords):
                return category
    return DEFAULT_CATEGORY
