import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from densitree.tree import make_tree

T1 = "((a:1,b:1):1.5,c:2.5);"
T2 = "((a:1,c:1):1,b:2);"


@pytest.fixture
def tree_pair():
    """Two trees over {a, b, c} that disagree on which tips form a cherry."""
    return [make_tree(T1), make_tree(T2)]


@pytest.fixture
def ax():
    fig, ax = plt.subplots()
    yield ax
    plt.close(fig)
