import unittest
from unittest.mock import patch

from chess_explorer.errors import ErrorCode
from chess_explorer.rules import RulesEngine
from chess_explorer.session import ExplorerSession

PROMOTION_FEN = "8/4P3/8/8/8/8/k7/7K w - - 0 1"


class ApplyMoveTests(unittest.TestCase):
    def setUp(self):
        self.session = ExplorerSession()

    def test_branching_from_root(self):
        s = self.session
        first = s.apply_move("e2", "e4")
        self.assertTrue(first.ok)
        self.assertEqual((first.san, first.uci), ("e4", "e2e4"))
        self.assertEqual(s.get_current_ply(), 1)

        second = s.apply_move("e7", "e5")
        self.assertEqual(second.san, "e5")
        self.assertEqual(s.get_current_ply(), 2)

        s.go_prev()
        s.go_prev()
        self.assertEqual(s.current_node_id, s.root_id)

        third = s.apply_move("d2", "d4")
        self.assertTrue(third.ok)
        root = s.tree.nodes_by_id[s.root_id]
        self.assertEqual(len(root.child_ids), 2)
        self.assertEqual(root.child_ids[0], first.node_id)
        self.assertEqual(root.active_child_id, third.node_id)
        self.assertEqual(s.get_mainline_moves()[0].variation_count, 1)

    def test_replaying_a_move_reuses_the_node(self):
        s = self.session
        first = s.apply_move("e2", "e4")
        s.go_prev()
        s.apply_move("d2", "d4")
        s.go_prev()
        again = s.apply_move("E2", "E4")
        self.assertTrue(again.ok)
        self.assertEqual(again.node_id, first.node_id)
        self.assertEqual(len(s.tree.nodes_by_id), 3)
        self.assertEqual(s.tree.nodes_by_id[s.root_id].active_child_id, first.node_id)

    def test_illegal_moves(self):
        s = self.session
        for src, dst in (("e2", "e5"), ("e9", "e4"), ("", "e4"), ("e7", "e5")):
            result = s.apply_move(src, dst)
            self.assertFalse(result.ok)
            self.assertEqual(result.error.code, ErrorCode.ILLEGAL_MOVE)
        self.assertEqual(len(s.tree.nodes_by_id), 1)

    def test_promotion_required_then_applied(self):
        s = self.session
        s.load_fen(PROMOTION_FEN)
        missing = s.apply_move("e7", "e8")
        self.assertFalse(missing.ok)
        self.assertEqual(missing.error.code, ErrorCode.PROMOTION_REQUIRED)
        self.assertEqual(sorted(missing.error.details["options"]), ["b", "n", "q", "r"])
        self.assertEqual(len(s.tree.nodes_by_id), 1)

        bad = s.apply_move("e7", "e8", "k")
        self.assertEqual(bad.error.code, ErrorCode.ILLEGAL_MOVE)

        ok = s.apply_move("e7", "e8", "Q")
        self.assertTrue(ok.ok)
        self.assertEqual(ok.uci, "e7e8q")
        node = s.get_current_node()
        self.assertEqual(node.incoming_move.uci, "e7e8q")
        self.assertEqual(node.incoming_move.promotion, "q")

    def test_underpromotion_is_a_separate_branch(self):
        s = self.session
        s.load_fen(PROMOTION_FEN)
        queen = s.apply_move("e7", "e8", "q")
        s.go_prev()
        knight = s.apply_move("e7", "e8", "n")
        self.assertNotEqual(queen.node_id, knight.node_id)
        self.assertEqual(knight.uci, "e7e8n")

    def test_promotion_hint_ignored_for_normal_move(self):
        result = self.session.apply_move("e2", "e4", "q")
        self.assertTrue(result.ok)
        self.assertEqual(result.uci, "e2e4")
        self.assertIsNone(self.session.get_current_node().incoming_move.promotion)

    def test_rules_engine_failure_is_internal_error(self):
        with patch.object(RulesEngine, "try_create", return_value=None):
            result = self.session.apply_move("e2", "e4")
        self.assertEqual(result.error.code, ErrorCode.INTERNAL_ERROR)
        self.assertEqual(len(self.session.tree.nodes_by_id), 1)

    def test_moves_allowed_in_loaded_modes(self):
        self.session.load_moves_san(["e4", "e5"], "g")
        self.session.go_prev()
        result = self.session.apply_move("g8", "f6")
        self.assertTrue(result.ok)
        self.assertEqual(len(self.session.tree.nodes_by_id[self.session.get_current_node().parent_id].child_ids), 2)


class NavigationTests(unittest.TestCase):
    def setUp(self):
        self.session = ExplorerSession()
        self.session.load_moves_san(["e4", "e5", "Nf3", "Nc6"], "g")

    def test_linear_navigation(self):
        s = self.session
        self.assertFalse(s.can_go_next())
        self.assertTrue(s.can_go_prev())
        s.go_start()
        self.assertEqual(s.current_node_id, s.root_id)
        self.assertFalse(s.can_go_prev())
        s.go_prev()
        self.assertEqual(s.current_node_id, s.root_id)
        s.go_next()
        self.assertEqual(s.get_current_ply(), 1)
        s.go_end()
        self.assertEqual(s.get_current_ply(), 4)

    def test_go_to_ply_clamps(self):
        s = self.session
        s.go_to_ply(2)
        self.assertEqual(s.get_current_ply(), 2)
        s.go_to_ply(99)
        self.assertEqual(s.get_current_ply(), 4)
        s.go_to_ply(-3)
        self.assertEqual(s.get_current_ply(), 0)
        s.go_to_ply("x")
        self.assertEqual(s.get_current_ply(), 0)

    def test_go_to_node_ignores_unknown_ids(self):
        s = self.session
        s.go_to_node("n2")
        self.assertEqual(s.current_node_id, "n2")
        s.go_to_node("nope")
        self.assertEqual(s.current_node_id, "n2")

    def test_go_next_stays_on_mainline(self):
        s = self.session
        s.go_to_ply(1)
        side = s.apply_move("c7", "c5")
        s.go_prev()
        # active child is now the c5 branch, mainline next is still e5
        s.go_next()
        self.assertEqual(s.current_node_id, "n2")
        s.go_to_node(side.node_id)
        s.apply_move("g1", "f3")
        s.go_prev()
        s.go_next()
        self.assertNotEqual(s.current_node_id, side.node_id)
        self.assertEqual(s.get_current_ply(), 3)

    def test_go_end_follows_mainline(self):
        s = self.session
        s.go_to_ply(1)
        s.apply_move("c7", "c5")
        s.go_end()
        self.assertEqual(s.get_current_ply(), 4)
        self.assertEqual(s.get_current_node().incoming_move.san, "Nc6")

    def test_variation_cycling_wraps(self):
        s = self.session
        s.go_to_ply(1)
        c5 = s.apply_move("c7", "c5").node_id
        s.go_prev()
        e6 = s.apply_move("e7", "e6").node_id
        self.assertTrue(s.can_go_next_variation())
        info = s.get_variation_info()
        self.assertEqual((info.index, info.count), (2, 3))

        s.go_next_variation()
        self.assertEqual(s.current_node_id, "n2")
        parent = s.tree.nodes_by_id[s.get_current_node().parent_id]
        self.assertEqual(parent.active_child_id, "n2")
        s.go_next_variation()
        self.assertEqual(s.current_node_id, c5)
        s.go_prev_variation()
        s.go_prev_variation()
        self.assertEqual(s.current_node_id, e6)
        self.assertEqual(parent.child_ids[0], "n2")

    def test_no_variation_at_root_or_single_child(self):
        s = self.session
        self.assertFalse(s.can_go_prev_variation())
        self.assertIsNone(s.get_variation_info())
        before = s.current_node_id
        s.go_next_variation()
        self.assertEqual(s.current_node_id, before)
        s.go_start()
        self.assertFalse(s.can_go_next_variation())


class TreeShapeTests(unittest.TestCase):
    def _assert_well_formed(self, session):
        tree = session.tree
        nodes = tree.nodes_by_id
        self.assertIn(tree.root_id, nodes)
        self.assertIn(session.current_node_id, nodes)
        root = nodes[tree.root_id]
        self.assertIsNone(root.parent_id)
        self.assertIsNone(root.incoming_move)
        self.assertEqual(root.ply, 0)

        for node_id, node in nodes.items():
            self.assertEqual(node.id, node_id)
            self.assertEqual(len(node.child_ids), len(set(node.child_ids)))
            for child_id in node.child_ids:
                self.assertIn(child_id, nodes)
                self.assertEqual(nodes[child_id].parent_id, node_id)
            if node.active_child_id is not None:
                self.assertIn(node.active_child_id, node.child_ids)
            ucis = [nodes[c].incoming_move.uci for c in node.child_ids]
            self.assertEqual(len(ucis), len(set(ucis)))
            if node_id == tree.root_id:
                continue
            self.assertIn(node.parent_id, nodes)
            parent = nodes[node.parent_id]
            self.assertIn(node_id, parent.child_ids)
            self.assertEqual(node.ply, parent.ply + 1)
            self.assertIsNotNone(node.incoming_move)

        # every node reaches the root without revisiting anything, and the root reaches every node
        for node_id in nodes:
            seen = set()
            cursor = node_id
            while cursor is not None:
                self.assertNotIn(cursor, seen)
                seen.add(cursor)
                cursor = nodes[cursor].parent_id
            self.assertIn(tree.root_id, seen)
        reachable, stack = set(), [tree.root_id]
        while stack:
            current = stack.pop()
            reachable.add(current)
            stack.extend(nodes[current].child_ids)
        self.assertEqual(reachable, set(nodes))

    def _mainline_children(self, session):
        return {nid: node.child_ids[0] for nid, node in session.tree.nodes_by_id.items() if node.child_ids}

    def _assert_mainline_kept(self, session, before):
        after = self._mainline_children(session)
        for node_id, first_child in before.items():
            self.assertEqual(after.get(node_id), first_child, node_id)

    def test_tree_stays_well_formed_through_branching(self):
        s = ExplorerSession()
        s.load_moves_san(["e4", "e5", "Nf3", "Nc6", "Bb5"], "g")
        self._assert_well_formed(s)
        mainline = self._mainline_children(s)

        steps = [
            lambda: s.go_to_ply(2),
            lambda: s.apply_move("d2", "d4"),
            lambda: s.apply_move("e5", "d4"),
            lambda: s.go_to_ply(2),
            lambda: s.apply_move("d2", "d4"),
            lambda: s.apply_move("g1", "f3"),
            lambda: s.go_to_ply(1),
            lambda: s.apply_move("c7", "c5"),
            lambda: s.go_prev(),
            lambda: s.apply_move("e7", "e6"),
            lambda: s.go_next_variation(),
            lambda: s.go_next_variation(),
            lambda: s.go_prev_variation(),
            lambda: s.go_start(),
            lambda: s.apply_move("e2", "e4"),
            lambda: s.go_end(),
            lambda: s.go_next(),
        ]
        for step in steps:
            step()
            self._assert_well_formed(s)
            self._assert_mainline_kept(s, mainline)
            mainline.update({k: v for k, v in self._mainline_children(s).items() if k not in mainline})

        self.assertEqual([m.san for m in s.get_mainline_moves()], ["e4", "e5", "Nf3", "Nc6", "Bb5"])
        self.assertEqual(s.get_current_ply(), 5)

        s.reset_to_initial()
        self._assert_well_formed(s)
        self.assertEqual(len(s.tree.nodes_by_id), 1)

    def test_free_play_tree_is_well_formed(self):
        s = ExplorerSession()
        for src, dst in (("e2", "e4"), ("e7", "e5"), ("g1", "f3")):
            s.apply_move(src, dst)
        s.go_start()
        s.apply_move("d2", "d4")
        s.apply_move("d7", "d5")
        s.go_to_node("n1")
        s.apply_move("c7", "c5")
        self._assert_well_formed(s)
        root = s.tree.nodes_by_id[s.root_id]
        self.assertEqual(root.child_ids[0], "n1")
        self.assertEqual(s.get_mainline_node_ids(), ["n0", "n1", "n2", "n3"])


if __name__ == "__main__":
    unittest.main()
