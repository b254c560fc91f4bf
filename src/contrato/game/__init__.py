"""Game rules, character mechanics and the systems that apply them."""
