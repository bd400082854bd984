from . import dashboard, materials, price_calculator, settings

__all__ = [
	"dashboard",
	"price_calculator",
	"materials",
	"settings",
]
