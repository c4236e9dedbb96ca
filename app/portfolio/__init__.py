from .models import Portfolio, PortfolioVersion

__all__ = ["Portfolio", "PortfolioVersion"]
