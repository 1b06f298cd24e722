"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class ProductCategory(str, Enum):
    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    HOME_GARDEN = "home-garden"
    BOOKS = "books"
    SPORTS = "sports"
    TOYS = "toys"
    AUTOMOTIVE = "automotive"
    HEALTH_BEAUTY = "health-beauty"
    MUSIC = "music"
    OTHER = "other"


CATEGORY_LABELS: dict[ProductCategory, str] = {
    ProductCategory.ELECTRONICS: "Electronics",
    ProductCategory.CLOTHING: "Clothing & Fashion",
    ProductCategory.HOME_GARDEN: "Home & Garden",
    ProductCategory.BOOKS: "Books & Media",
    ProductCategory.SPORTS: "Sports & Recreation",
    ProductCategory.TOYS: "Toys & Games",
    ProductCategory.AUTOMOTIVE: "Automotive",
    ProductCategory.HEALTH_BEAUTY: "Health & Beauty",
    ProductCategory.MUSIC: "Musical Instruments",
    ProductCategory.OTHER: "Other",
}


class ProductCondition(str, Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why a transaction ended in FAILED. Only CONFLICT is ever persisted today."""
    CONFLICT = "CONFLICT"
    UNAVAILABLE = "UNAVAILABLE"
    SELF_PURCHASE = "SELF_PURCHASE"
    NOT_FOUND = "NOT_FOUND"
