import re
from collections.abc import Callable
from typing import IO, Literal

from typing_extensions import TypeIs

from .utils import always_true, initialized_property

__all__ = [
    "Branch",
    "node",
    "leaf",
    "tree",
    "is_node",
    "is_leaf",
    "make_tree",
    "loadNewick",
]

NAME_PATTERN = re.compile(r"""'([^']*)'|"([^"]*)"|([^\s\(\),:;\[\]'"]+)""")
LENGTH_PATTERN = re.compile(r":\s*([0-9\.\-+Ee]+)")
COMMENT_PATTERN = re.compile(r"\[&?([^\]]*)\]")
TRAIT_PATTERN = re.compile(r"""([A-Za-z_\.0-9%!]+)=(\{[^}]*\}|"[^"]*"|'[^']*'|[^,]+)""")


class Branch:
    """Parent class to tree components (nodes and tips)

    Attributes:
        branchType ("leaf" | "node"): Type of branch (defined in subclasses)
        length (float | None): Length of the branch, `None` when the tree string does not give one
        height (float | None): Distance from the root, assigned in `traverse_tree()`
        parent (node | None): Parent node, `None` for the root
        traits (dict): Annotations parsed from the tree string
        index (int): Position of the character that defines this object in the tree string
    """

    branchType: Literal["leaf", "node"]

    def __init__(self, branchType: Literal["leaf", "node"], traits: dict | None = None):
        self.branchType = branchType
        self.length: float | None = None
        self.height: float | None = None
        self.parent: node | None = None
        self.traits = traits or {}

    @initialized_property
    def index(self) -> int: ...

    def is_node(self) -> bool:
        return isinstance(self, node)

    def is_leaf(self) -> bool:
        return isinstance(self, leaf)


class node(Branch):
    """
    Internal node of a tree.

    Attributes:
    children (list): Descendant branches in the order they appear in the tree string.
    leaves (set): Names of all descendant tips, assigned in `traverse_tree()`.
    """

    def __init__(self):
        super().__init__("node")
        self.children: list[BranchType] = []
        self.leaves: set[str] = set()


class leaf(Branch):
    def __init__(self):
        super().__init__("leaf")

    @initialized_property
    def name(self) -> str: ...


BranchType = node | leaf


def is_node(obj: BranchType) -> TypeIs[node]:
    return obj.is_node()


def is_leaf(obj: BranchType) -> TypeIs[leaf]:
    return obj.is_leaf()


def clade_size(k: BranchType) -> int:
    return len(k.leaves) if is_node(k) else 1


class tree:
    """
    A rooted phylogenetic tree.

    Attributes:
    cur_node (node or leaf or None): The branch currently being built while parsing in `make_tree()`.
    root (node or leaf or None): The root of the tree.
    Objects (list): A flat list of all branches, in the order they appear in the tree string (parents before children).
    treeHeight (float): Distance between the root and the furthest tip, assigned in `traverse_tree()`.
    """

    def __init__(self):
        self.cur_node: BranchType | None = None
        self.root: BranchType | None = None
        self.Objects: list[BranchType] = []
        self.treeHeight = 0.0

    def _attach(self, new_branch: BranchType):
        if self.root is None:
            self.root = new_branch
        else:
            if self.cur_node is None or not is_node(self.cur_node):
                raise ValueError(
                    "Attempted to add a child to a non-node object at position %d. Check if tip names have illegal characters like parentheses or commas."
                    % (new_branch.index)
                )
            new_branch.parent = self.cur_node
            self.cur_node.children.append(new_branch)
        self.cur_node = new_branch
        self.Objects.append(new_branch)

    def add_node(self, i: int):
        """
        Attaches a new node to the current node and makes it current.

        Parameters:
        i (int): The position of the new node along the tree string.
        """
        new_node = node()
        new_node.index = i
        self._attach(new_node)

    def add_leaf(self, i: int, name: str):
        """
        Attaches a new tip to the current node and makes it current.

        Parameters:
        i (int): The position of the new tip along the tree string.
        name (str): The name of the tip.
        """
        new_leaf = leaf()
        new_leaf.index = i
        new_leaf.name = name
        self._attach(new_leaf)

    def traverse_tree(self, ladderize: bool = False, verbose: bool = False) -> list[BranchType]:
        """
        Pre-order traversal from the root that also sets `height` on every branch and `leaves` on every node.

        Parameters:
        ladderize (bool): If True, children of each node are visited smallest clade first (ties keep their order in the tree string). Default is False.
        verbose (bool): If True, prints verbose output during traversal. Default is False.

        Returns:
        list: All branches in visiting order.

        A branch without a length counts as one unit of height, so trees without branch lengths come out as cladograms.
        """
        if self.root is None:
            raise ValueError("Tree is empty")

        for k in reversed(self.Objects):  ## children appear after their parents in Objects
            if is_node(k):
                if not k.children:
                    raise ValueError("Tried traversing through hanging node without children. Index: %s" % (k.index))
                k.leaves = set()
                for child in k.children:
                    k.leaves |= child.leaves if is_node(child) else {child.name}

        visited = []
        stack: list[BranchType] = [self.root]
        while stack:
            k = stack.pop()
            if k.parent is None:
                k.height = 0.0
            else:
                k.height = k.parent.height + (1.0 if k.length is None else k.length)
            if verbose:
                print("at %s (%s), height %.6f" % (k.index, k.branchType, k.height))
            visited.append(k)

            if is_node(k):
                children = sorted(k.children, key=clade_size) if ladderize else k.children
                stack.extend(reversed(children))  ## first child ends on top of the stack

        self.treeHeight = max(k.height for k in visited)
        return visited

    def getExternal(self, secondFilter: Callable[[leaf], bool] | None = None) -> list[leaf]:
        if secondFilter is None:
            secondFilter = always_true
        return [k for k in self.Objects if is_leaf(k) and secondFilter(k)]

    def getInternal(self, secondFilter: Callable[[node], bool] | None = None) -> list[node]:
        if secondFilter is None:
            secondFilter = always_true
        return [k for k in self.Objects if is_node(k) and secondFilter(k)]

    def tipLabels(self) -> list[str]:
        """Tip names in the order they appear in the tree string."""
        return [k.name for k in self.getExternal()]

    def hasBranchLengths(self) -> bool:
        """True when every branch apart from the root has a length."""
        return all(k.length is not None for k in self.Objects if k is not self.root)


def parse_traits(comment: str) -> dict:
    """
    Parse a BEAST-style annotation (the inside of `[&...]`) into a dictionary.

    Numeric values become floats, quoted values are unquoted, and `{...}` values become lists.

    Example:
    >>> parse_traits('posterior=0.95,host="human",height_95%_HPD={1.2,3.4}')
    {'posterior': 0.95, 'host': 'human', 'height_95%_HPD': [1.2, 3.4]}
    """

    def convert(value: str):
        value = value.strip().strip('"').strip("'")
        try:
            return float(value)
        except ValueError:
            return value

    traits = {}
    for key, value in TRAIT_PATTERN.findall(comment):
        if value.startswith("{"):
            traits[key] = [convert(v) for v in value[1:-1].split(",") if v.strip()]
        else:
            traits[key] = convert(value)
    return traits


def make_tree(data: str, verbose: bool = False) -> tree:
    """
    Parse a Newick tree string and create a tree object.

    Parameters:
    data (str): The tree string to be parsed, ending in a semicolon.
    verbose (bool): If True, prints verbose output during the process. Default is False.

    Returns:
    tree: The tree object created from the parsed tree string.

    Raises:
    ValueError: If the string is not a well formed Newick tree.

    Example:
    >>> ll = make_tree("(A:0.1,B:0.2,(C:0.3,D:0.4)90:0.5);")
    """
    data = data.strip()
    if not data.endswith(";"):
        raise ValueError("Improperly formatted string: must end in semicolon")
    if data.count("(") != data.count(")"):
        raise ValueError("Improperly formatted string: must have matching parentheses")

    ll = tree()
    i = 0
    expect_tip = True  ## next name is a tip (after an opening bracket or a comma)

    while i < len(data):
        char = data[i]

        if char.isspace():
            i += 1
            continue

        if char == "(":
            if not expect_tip:
                raise ValueError("Tree string unparseable, unexpected '(' at position %d" % (i))
            if verbose:
                print("%d adding node" % (i))
            ll.add_node(i)
            i += 1
            continue

        if char in ",);":
            if expect_tip:
                raise ValueError("Unnamed tip at position %d" % (i))
            if char == ";":
                if ll.cur_node is not ll.root:
                    raise ValueError("Tree string ended before all clades were closed")
                break
            if ll.cur_node is None or ll.cur_node.parent is None:
                raise ValueError("Unbalanced '%s' at position %d" % (char, i))
            ll.cur_node = ll.cur_node.parent  ## bifurcation or clade end, back to the parent
            expect_tip = char == ","
            i += 1
            continue

        if char == "[":
            match = COMMENT_PATTERN.match(data, i)
            if match is None:
                raise ValueError("Unclosed comment at position %d" % (i))
            if ll.cur_node is not None:
                if verbose:
                    print("%d comment: %s" % (i, match.group(1)))
                ll.cur_node.traits.update(parse_traits(match.group(1)))
            i = match.end()
            continue

        if char == ":":
            match = LENGTH_PATTERN.match(data, i)
            if match is None or ll.cur_node is None:
                raise ValueError("Unparseable branch length at position %d" % (i))
            ll.cur_node.length = float(match.group(1))
            if verbose:
                print("adding branch length (%d) %.6f" % (i, ll.cur_node.length))
            i = match.end()
            continue

        match = NAME_PATTERN.match(data, i)
        if match is None:
            raise ValueError("Tree string unparseable\nStopped at >>%s<<" % (data[i : i + 50]))
        name = next(group for group in match.groups() if group is not None)

        if expect_tip:
            if verbose:
                print("%d adding leaf %s" % (i, name))
            ll.add_leaf(i, name)
            expect_tip = False
        else:  ## name right after a closing bracket is an internal node label
            assert ll.cur_node is not None
            ll.cur_node.traits["label"] = name
        i = match.end()

    return ll


def loadNewick(tree_path: str | IO[str], verbose: bool = False) -> list[tree]:
    """
    Load every tree from a Newick file.

    Parameters:
    tree_path (str or file-like object): Path to the file or an open handle. Trees are separated by semicolons and may span several lines.
    verbose (bool): If True, prints verbose output during the process. Default is False.

    Returns:
    list: The trees in file order.

    Example:
    >>> trees = loadNewick("posterior.trees")
    """
    if isinstance(tree_path, str):
        with open(tree_path) as handle:
            content = handle.read()
    else:
        content = tree_path.read()

    trees = []
    for chunk in content.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        if "(" in chunk:
            chunk = chunk[chunk.index("(") :]  ## drop anything like "tree STATE_0 = " before the tree
        trees.append(make_tree(chunk + ";", verbose=verbose))
        if verbose:
            print("Identified tree string %d" % (len(trees)))

    if not trees:
        raise ValueError("No tree strings found in %s" % (tree_path))
    return trees
