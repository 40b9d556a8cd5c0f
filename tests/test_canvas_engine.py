from __future__ import annotations

import logging

import pytest

from form_canvas.engine import CanvasEngine
from form_canvas.layout.rows import TreeInvariantError
from form_canvas.schemas.drag import CanvasPayload, PalettePayload, Rect
from form_canvas.schemas.nodes import ComponentNode, RowNode
from form_canvas.settings import Settings

RECT = Rect(left=0, top=0, width=100, height=100)
NEW = {"origin": "palette", "kind": "text_input"}


def comp(node_id: str) -> dict:
    return {"type": "component", "nodeId": node_id, "kind": "text_input", "label": node_id.upper()}


def row(node_id: str, *children: dict) -> dict:
    return {"type": "row", "nodeId": node_id, "children": list(children)}


def shape(tree) -> list:
    return [n.node_id if isinstance(n, ComponentNode) else [c.node_id for c in n.children] for n in tree]


def test_palette_drop_right_of_lone_component_forms_row():
    engine = CanvasEngine([comp("a")])
    result = engine.drop_intent("a", "right", payload=NEW)
    assert result.ok
    assert len(engine.tree) == 1
    new_row = engine.tree[0]
    assert isinstance(new_row, RowNode)
    assert new_row.children[0].node_id == "a"
    assert new_row.children[1].node_id == result.selected_id
    assert result.selected_id.startswith("comp_")


def test_palette_drop_left_of_row_child_inserts_between():
    engine = CanvasEngine([row("r1", comp("a"), comp("b"))])
    result = engine.drop_intent("b", "left", payload=NEW)
    children = [c.node_id for c in engine.tree[0].children]
    assert children == ["a", result.selected_id, "b"]
    assert engine.tree[0].node_id == "r1"


def test_drop_into_full_row_is_rejected_and_tree_kept():
    engine = CanvasEngine([row("r1", comp("a"), comp("b"), comp("c"), comp("d"))])
    before = engine.tree
    result = engine.drop_intent("c", "right", payload=NEW)
    assert not result.ok
    assert result.reason == "RowCapacityExceeded"
    assert result.message
    assert engine.tree == before
    assert result.tree == before
    assert not engine.can_undo


def test_move_component_before_sibling():
    engine = CanvasEngine([comp("a"), comp("b")])
    result = engine.drop_intent("a", "before", payload={"origin": "canvas", "nodeId": "b"})
    assert result.ok
    assert result.selected_id == "b"
    assert shape(engine.tree) == ["b", "a"]


def test_delete_row_child_dissolves_row():
    engine = CanvasEngine([row("r1", comp("a"), comp("b"))])
    result = engine.delete("a")
    assert result.ok
    assert shape(engine.tree) == ["b"]
    assert isinstance(engine.tree[0], ComponentNode)


def test_palette_layout_item_is_rejected():
    engine = CanvasEngine([comp("a")])
    result = engine.drop_intent("a", "right", payload={"origin": "palette", "kind": "row-layout"})
    assert result.reason == "ImplicitLayoutRejected"
    assert shape(engine.tree) == ["a"]


def test_move_within_full_row_reorders():
    engine = CanvasEngine([row("r1", comp("a"), comp("b"), comp("c"), comp("d"))])
    result = engine.drop_intent("c", "right", payload=CanvasPayload(node_id="a"))
    assert result.ok
    assert shape(engine.tree) == [["b", "c", "a", "d"]]
    assert engine.tree[0].node_id == "r1"


def test_moving_out_of_row_dissolves_the_leftover():
    engine = CanvasEngine([row("r1", comp("a"), comp("b"))])
    engine.drop_intent("b", "after", payload=CanvasPayload(node_id="a"))
    assert shape(engine.tree) == ["b", "a"]


def test_moving_row_child_beside_top_level_component():
    engine = CanvasEngine([row("r1", comp("a"), comp("b")), comp("c")])
    engine.drop_intent("c", "right", payload=CanvasPayload(node_id="a"))
    assert shape(engine.tree) == ["b", ["c", "a"]]


def test_rejected_move_keeps_source_in_place():
    tree = [row("r1", comp("a"), comp("b")), row("r2", comp("c"), comp("d"), comp("e"), comp("f"))]
    engine = CanvasEngine(tree)
    before = engine.tree
    result = engine.drop_intent("d", "left", payload=CanvasPayload(node_id="a"))
    assert result.reason == "RowCapacityExceeded"
    assert engine.tree == before


def test_row_moves_vertically_only():
    engine = CanvasEngine([row("r1", comp("a"), comp("b")), comp("c")])
    rejected = engine.drop_intent("c", "left", payload=CanvasPayload(node_id="r1"))
    assert rejected.reason == "RowNestingRejected"
    moved = engine.drop_intent("c", "after", payload=CanvasPayload(node_id="r1"))
    assert moved.ok
    assert shape(engine.tree) == ["c", ["a", "b"]]


def test_drop_on_itself_is_a_cancel():
    engine = CanvasEngine([comp("a"), comp("b")])
    result = engine.drop_intent("a", "right", payload=CanvasPayload(node_id="a"))
    assert result.cancelled
    assert not result.ok
    assert result.reason is None
    assert shape(engine.tree) == ["a", "b"]


def test_drop_uses_pointer_geometry_and_captured_payload():
    engine = CanvasEngine([comp("a")])
    engine.begin_drag(NEW)
    assert isinstance(engine.drag_payload, PalettePayload)
    result = engine.drop("a", 95, 50, RECT)
    assert result.ok
    assert shape(engine.tree) == [["a", result.selected_id]]
    assert engine.drag_payload is None


def test_drop_on_row_center_appends():
    engine = CanvasEngine([row("r1", comp("a"), comp("b"))])
    result = engine.drop("r1", 50, 50, RECT, payload=NEW)
    assert shape(engine.tree) == [["a", "b", result.selected_id]]


def test_drop_without_drag_is_cancelled():
    engine = CanvasEngine([comp("a")])
    result = engine.drop_intent("a", "after")
    assert result.cancelled
    assert shape(engine.tree) == ["a"]


def test_drop_at_inserts_at_index_or_end():
    engine = CanvasEngine([comp("a"), comp("b")])
    first = engine.drop_at(0, payload=NEW)
    assert shape(engine.tree)[0] == first.selected_id
    last = engine.drop_at(payload=NEW)
    assert shape(engine.tree)[-1] == last.selected_id


def test_drop_at_moves_top_level_node_down():
    engine = CanvasEngine([comp("a"), comp("b"), comp("c")])
    engine.drop_at(2, payload=CanvasPayload(node_id="a"))
    assert shape(engine.tree) == ["b", "a", "c"]
    engine.drop_at(payload=CanvasPayload(node_id="b"))
    assert shape(engine.tree) == ["a", "c", "b"]


def test_drop_on_unknown_target_appends():
    engine = CanvasEngine([comp("a")])
    result = engine.drop_intent("ghost", "left", payload=NEW)
    assert result.ok
    assert shape(engine.tree) == ["a", result.selected_id]


def test_hover_sets_and_clears_indicator():
    engine = CanvasEngine([comp("a"), row("r1", comp("b"), comp("c"))])
    engine.begin_drag(NEW)
    indicator = engine.hover("a", 50, 10, RECT)
    assert indicator.intent == "before"
    assert indicator.target_id == "a"
    assert indicator.bounds is not None
    assert engine.hover("r1", 50, 50, RECT).intent == "append"
    assert engine.hover("ghost", 50, 50, RECT) is None
    assert engine.hover_indicator is None
    engine.hover("a", 50, 90, RECT)
    engine.leave_hover()
    assert engine.hover_indicator is None
    assert engine.drag_payload is not None


def test_cancel_drag_clears_state():
    engine = CanvasEngine([comp("a")])
    engine.begin_drag(NEW)
    engine.hover("a", 50, 50, RECT)
    result = engine.cancel_drag()
    assert result.cancelled
    assert engine.drag_payload is None
    assert engine.hover_indicator is None
    assert shape(result.tree) == ["a"]


def test_delete_unknown_node_reports_not_found():
    result = CanvasEngine([comp("a")]).delete("ghost")
    assert result.reason == "TargetNotFound"


def test_update_component_commits():
    engine = CanvasEngine([comp("a")])
    result = engine.update_component("a", {"label": "Name", "required": True})
    assert result.ok
    assert engine.tree[0].label == "Name"
    assert engine.tree[0].required is True
    assert engine.can_undo


def test_load_cleans_degenerate_rows_and_rejects_overfull_ones():
    engine = CanvasEngine()
    engine.load([row("r1", comp("a")), comp("b")])
    assert shape(engine.tree) == ["a", "b"]
    with pytest.raises(TreeInvariantError):
        engine.load([row("r1", comp("a"), comp("b"), comp("c"), comp("d"), comp("e"))])
    assert shape(engine.tree) == ["a", "b"]


def test_constructor_rejects_duplicate_ids():
    with pytest.raises(TreeInvariantError):
        CanvasEngine([comp("a"), row("r1", comp("a"), comp("b"))])


def test_clear_empties_canvas():
    engine = CanvasEngine([comp("a")])
    engine.clear()
    assert engine.tree == ()


def test_undo_and_redo():
    engine = CanvasEngine([comp("a"), comp("b")])
    engine.delete("a")
    engine.delete("b")
    assert engine.undo().ok
    assert shape(engine.tree) == ["b"]
    assert engine.undo().ok
    assert shape(engine.tree) == ["a", "b"]
    assert engine.undo().cancelled
    assert engine.redo().ok
    assert shape(engine.tree) == ["b"]
    engine.drop_at(payload=NEW)
    assert not engine.can_redo


def test_history_limit_from_settings():
    engine = CanvasEngine([comp("a"), comp("b"), comp("c")], settings=Settings(history_limit=2))
    engine.delete("a")
    engine.delete("b")
    engine.undo()
    assert not engine.can_undo
    assert shape(engine.tree) == ["b", "c"]


def test_custom_row_capacity():
    engine = CanvasEngine([row("r1", comp("a"), comp("b"))], settings=Settings(max_row_children=2))
    result = engine.drop_intent("a", "left", payload=NEW)
    assert result.reason == "RowCapacityExceeded"
    assert "maximum of 2" in result.message


def test_rejection_is_logged(caplog):
    engine = CanvasEngine([row("r1", comp("a"), comp("b"), comp("c"), comp("d"))])
    with caplog.at_level(logging.INFO, logger="form_canvas.engine"):
        engine.drop_intent("a", "left", payload=NEW)
    assert any("RowCapacityExceeded" in r.getMessage() for r in caplog.records)


def test_in_place_edits_cannot_reach_undo_snapshots():
    select = {"type": "component", "nodeId": "a", "kind": "select", "properties": {"options": [{"value": "x"}]}}
    engine = CanvasEngine()
    engine.load([select])
    engine.update_component("a", {"label": "L"})
    engine.tree[0].properties["options"].append({"value": "leak"})
    engine.undo()
    assert engine.tree[0].label == ""
    assert engine.tree[0].properties == {"options": [{"value": "x"}]}
    engine.tree[0].properties["options"].clear()
    engine.redo()
    assert engine.tree[0].label == "L"
    assert engine.tree[0].properties == {"options": [{"value": "x"}]}


def test_duplicate_places_copy_after_original():
    engine = CanvasEngine([comp("a"), row("r1", comp("b"), comp("c"))])
    top = engine.duplicate("a")
    assert top.ok
    assert shape(engine.tree)[:2] == ["a", top.selected_id]
    assert engine.tree[1].label == "A (Copy)"
    inner = engine.duplicate("b")
    assert shape(engine.tree)[2] == ["b", inner.selected_id, "c"]
    assert engine.undo().ok
    assert shape(engine.tree)[2] == ["b", "c"]


def test_duplicate_rejections():
    engine = CanvasEngine([row("r1", comp("a"), comp("b"), comp("c"), comp("d"))])
    assert engine.duplicate("a").reason == "RowCapacityExceeded"
    assert engine.duplicate("r1").reason == "TargetNotFound"
    assert engine.duplicate("ghost").reason == "TargetNotFound"
    assert not engine.can_undo
