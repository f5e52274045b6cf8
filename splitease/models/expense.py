from datetime import datetime
from enum import Enum
from typing import List, Optional
from sqlmodel import Field, SQLModel


class SplitMethod(str, Enum):
    equal = "equal"
    percentage = "percentage"
    custom = "custom"
    shares = "shares"


class ExpenseCategory(str, Enum):
    food = "food"
    groceries = "groceries"
    restaurants = "restaurants"
    coffee = "coffee"
    travel = "travel"
    transportation = "transportation"
    accommodation = "accommodation"
    shopping = "shopping"
    clothing = "clothing"
    electronics = "electronics"
    utilities = "utilities"
    rent = "rent"
    internet = "internet"
    phone = "phone"
    entertainment = "entertainment"
    movies = "movies"
    games = "games"
    sports = "sports"
    health = "health"
    medical = "medical"
    fitness = "fitness"
    education = "education"
    books = "books"
    courses = "courses"
    gifts = "gifts"
    charity = "charity"
    other = "other"


# top-level categories shown to clients, with the tags grouped under them
CATEGORY_GROUPS = [
    {"value": "food", "label": "Food & Dining", "subcategories": ["groceries", "restaurants", "coffee"]},
    {"value": "travel", "label": "Travel & Transport", "subcategories": ["transportation", "accommodation"]},
    {"value": "shopping", "label": "Shopping", "subcategories": ["clothing", "electronics"]},
    {"value": "utilities", "label": "Bills & Utilities", "subcategories": ["rent", "internet", "phone"]},
    {"value": "entertainment", "label": "Entertainment", "subcategories": ["movies", "games", "sports"]},
    {"value": "health", "label": "Health & Fitness", "subcategories": ["medical", "fitness"]},
    {"value": "education", "label": "Education", "subcategories": ["books", "courses"]},
    {"value": "gifts", "label": "Gifts & Charity", "subcategories": ["charity"]},
    {"value": "other", "label": "Other", "subcategories": []},
]


class Expense(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="group.id", index=True)
    payer_id: int = Field(foreign_key="user.id")
    amount: float
    description: str = ""
    category: ExpenseCategory = ExpenseCategory.other
    split_method: SplitMethod = SplitMethod.equal
    notes: Optional[str] = Field(default=None, max_length=500)
    date: datetime = Field(default_factory=datetime.utcnow)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ExpenseSplit(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    expense_id: int = Field(foreign_key="expense.id", index=True)
    user_id: int = Field(foreign_key="user.id")
    amount: float
    percentage: Optional[float] = None
    shares: Optional[float] = None
    settled: bool = False


class SplitEntryIn(SQLModel):
    user_id: int
    amount: Optional[float] = None
    percentage: Optional[float] = None
    shares: Optional[float] = None


class ExpenseCreate(SQLModel):
    description: str = Field(min_length=1)
    amount: float
    payer_id: Optional[int] = None
    category: ExpenseCategory = ExpenseCategory.other
    date: Optional[datetime] = None
    split_method: SplitMethod = SplitMethod.equal
    splits: Optional[List[SplitEntryIn]] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class ExpenseUpdate(SQLModel):
    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = None
    payer_id: Optional[int] = None
    category: Optional[ExpenseCategory] = None
    date: Optional[datetime] = None
    split_method: Optional[SplitMethod] = None
    splits: Optional[List[SplitEntryIn]] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class SettleRequest(SQLModel):
    user_id: int
