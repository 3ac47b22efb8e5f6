"""
Shared catalog fixtures for the test suite.
"""
from product_management.services.datastore import DataStore


def build_store():
    """Store with two categories, three subgroups and five products.

    Hardware (1)
        Hand Tools (1): Claw Hammer (1), Hand Saw (2)
        Fasteners (2): Wood Screws (3)
    Garden (2)
        Plants (3): Hammer Fern (4), Rose (5)
    """
    store = DataStore()
    hardware = store.create_category("Hardware", "Tools")
    garden = store.create_category("Garden")

    hand_tools = store.create_subgroup(hardware.id, "Hand Tools")
    fasteners = store.create_subgroup(hardware.id, "Fasteners")
    plants = store.create_subgroup(garden.id, "Plants")

    store.create_product(hand_tools.id, "HT-1", "Claw Hammer", "", 15.0, 4)
    store.create_product(hand_tools.id, "HT-2", "Hand Saw", "", 25.0, 0)
    store.create_product(fasteners.id, "FA-1", "Wood Screws", "box of 100", 5.0, 50)
    store.create_product(plants.id, "PL-1", "Hammer Fern", "", 20.0, 12)
    store.create_product(plants.id, "PL-2", "Rose", "", 9.5, 3)
    return store
