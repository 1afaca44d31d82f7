# backend/portfolio_tracker/__init__.py
