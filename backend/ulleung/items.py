import random

# Prize tokens of the Ulleung island board
ITEMS = ('squid', 'dokdo shrimp', 'pumpkin', 'myeongi greens')


def random_item(rng=None) -> str:
    """Pick a prize uniformly from the catalog."""
    return (rng or random).choice(ITEMS)
