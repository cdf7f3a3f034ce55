"""Shared hypothesis strategies for Weaver property-based testing.

Generates element trees through ``h()`` together with the HTML they are
expected to serialize to, so properties can compare rendered output
against an independent expectation:

- **Text**: chunks that contain no markup
- **Attributes**: ordered attribute mappings with string values
- **Trees**: nested ``(element, expected_html)`` pairs

"""

from __future__ import annotations

from hypothesis import strategies as st

from weaver import h

# ---------------------------------------------------------------------------
# Text strategies
# ---------------------------------------------------------------------------

# Text with no markup characters, so unescaped output is easy to predict
plain_text = st.text(
    alphabet=st.characters(
        blacklist_categories=("Cs",),
        blacklist_characters="<>&\"'\x00",
    ),
    min_size=1,
    max_size=40,
)

# Lowercase non-void tag names
tag_names = st.sampled_from(["div", "span", "p", "section", "ul", "li", "em", "strong"])

attr_names = st.from_regex(r"[a-z][a-z0-9-]{0,8}", fullmatch=True).filter(
    lambda name: name != "children"
)

attributes = st.dictionaries(attr_names, plain_text, max_size=3)


# ---------------------------------------------------------------------------
# Tree strategies
# ---------------------------------------------------------------------------


def _serialize_attrs(attrs: dict[str, str]) -> str:
    return "".join(f' {key}="{value}"' for key, value in attrs.items())


@st.composite
def leaf(draw):
    value = draw(plain_text)
    return value, value


def _extend(children):
    @st.composite
    def node(draw):
        tag = draw(tag_names)
        attrs = draw(attributes)
        kids = draw(st.lists(children, max_size=4))
        element = h(tag, attrs, *[child for child, _ in kids])
        expected = f"<{tag}{_serialize_attrs(attrs)}>{''.join(out for _, out in kids)}</{tag}>"
        return element, expected

    return node()


# (element_or_text, expected_html) pairs, nested a few levels deep
trees = st.recursive(leaf(), _extend, max_leaves=20)

# Root elements only (a bare string is not a renderable root)
element_trees = _extend(trees)
