"""Closed set of expense categories"""
from enum import Enum


class Category(str, Enum):
    FOOD = 'Food'
    TRAVEL = 'Travel'
    BILLS = 'Bills'
    ENTERTAINMENT = 'Entertainment'
    SHOPPING = 'Shopping'
    HEALTH = 'Health'
    EDUCATION = 'Education'
    OTHER = 'Other'


CATEGORIES = [category.value for category in Category]
DEFAULT_CATEGORY = Category.OTHER.value
ALL_CATEGORIES = 'All'  # Filter sentinel, never stored
