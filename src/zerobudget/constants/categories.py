"""
Read-only taxonomy of suggested category names and icon choices.
Suggestions are independent of the user's own categories; picking one simply
pre-fills the name of a new category.
"""

# Suggested expense categories grouped by area
EXPENSE_CATEGORIES = {
    "Housing": ["Rent", "Mortgage", "Utilities", "Maintenance"],
    "Transportation": ["Car Payment", "Gas", "Public Transit", "Maintenance"],
    "Food": ["Groceries", "Dining Out", "Takeout"],
    "Entertainment": ["Movies", "Games", "Hobbies", "Subscriptions"],
    "Healthcare": ["Insurance", "Medications", "Doctor Visits"],
    "Savings": ["Emergency Fund", "Retirement", "Investments"],
    "Debt": ["Credit Cards", "Student Loans", "Personal Loans"],
    "Shopping": ["Clothing", "Electronics", "Home Goods"],
}

# Icon palette offered when creating a category
EMOJI_CATEGORIES = {
    "Money": ["💰", "💵", "💸", "🏦", "💳", "💴", "💶", "💷"],
    "Home": ["🏠", "🏡", "🏢", "🏣", "🏤", "🏥", "🏨", "🏪", "🏫"],
    "Transport": ["🚗", "🚕", "🚙", "🚌", "🚎", "🏎", "🚓", "🚑", "🚒", "✈️", "🚂"],
    "Food": ["🍽️", "🛒", "🍳", "🥘", "🍕", "🍔", "🥪", "🥗"],
    "Health": ["🏥", "💊", "🏃", "🧘", "🚴", "⚕️", "🩺"],
    "Entertainment": ["🎮", "🎬", "🎭", "🎨", "🎪", "🎟️", "🎫"],
    "Education": ["📚", "🎓", "✏️", "📝", "💻", "🔬", "📱"],
    "Other": ["📦", "🎁", "🛍️", "👕", "📱", "💻", "🖥️", "⌚️", "📸"],
}


def get_all_suggestions() -> list[str]:
    """Flattened, de-duplicated suggestion list in taxonomy order."""
    return list(dict.fromkeys(name for names in EXPENSE_CATEGORIES.values() for name in names))

