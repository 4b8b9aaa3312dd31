import unittest

from chess_explorer.errors import ExplorerInvariantError
from chess_explorer.session import ExplorerSession

BLACK_TO_MOVE_FEN = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
EN_PASSANT_FEN = "4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 2"


def _labels(tokens):
    return [t.label for t in tokens]


class MoveListTests(unittest.TestCase):
    def setUp(self):
        self.session = ExplorerSession()

    def test_rows_and_labels(self):
        s = self.session
        s.load_moves_san(["e4", "e5", "Nf3"], "g")
        vm = s.get_move_list_view_model()
        self.assertEqual(len(vm.rows), 2)
        self.assertEqual(vm.rows[0].move_number, 1)
        self.assertEqual(vm.rows[0].white.label, "1.e4")
        self.assertEqual(vm.rows[0].black.label, "e5")
        self.assertEqual(vm.rows[1].white.label, "2.Nf3")
        self.assertIsNone(vm.rows[1].black)
        self.assertTrue(all(lines == [] for lines in vm.variations_by_node_id.values()))

    def test_variation_lines(self):
        s = self.session
        s.load_moves_san(["e4", "e5", "Nf3"], "g")
        s.go_to_ply(1)
        s.apply_move("c7", "c5")
        s.apply_move("g1", "f3")
        s.go_start()
        s.apply_move("d2", "d4")

        vm = s.get_move_list_view_model()
        e4 = vm.rows[0].white
        self.assertEqual(e4.variation_count, 1)
        self.assertFalse(e4.active_child_is_mainline)

        at_e4 = vm.variations_by_node_id[e4.node_id]
        self.assertEqual(len(at_e4), 1)
        self.assertEqual(_labels(at_e4[0].tokens), ["1...c5", "2.Nf3"])
        at_root = vm.variations_by_node_id[s.root_id]
        self.assertEqual(_labels(at_root[0].tokens), ["1.d4"])

        as_dict = vm.to_dict()
        self.assertEqual(as_dict["rows"][0]["white"]["label"], "1.e4")

    def test_black_to_move_start(self):
        s = self.session
        s.load_fen(BLACK_TO_MOVE_FEN)
        s.apply_move("e7", "e5")
        s.apply_move("g1", "f3")
        rows = s.get_move_list_view_model().rows
        self.assertEqual(rows[0].move_number, 1)
        self.assertIsNone(rows[0].white)
        self.assertEqual(rows[0].black.label, "1...e5")
        self.assertEqual(rows[1].white.label, "2.Nf3")


class LineSelectorTests(unittest.TestCase):
    def setUp(self):
        self.session = ExplorerSession()
        self.session.load_moves_san(["e4", "e5", "Nf3"], "g")

    def test_paths_and_lines(self):
        s = self.session
        s.go_to_ply(1)
        s.apply_move("c7", "c5")
        self.assertEqual([m.san for m in s.get_path_moves()], ["e4", "c5"])
        self.assertEqual([m.san for m in s.get_active_line_moves()], ["e4", "c5"])
        self.assertEqual(s.get_mainline_node_ids(), ["n0", "n1", "n2", "n3"])
        self.assertEqual(s.get_path_node_ids(), ["n0", "n1", "n4"])
        self.assertEqual(s.get_active_line_node_ids(), ["n0", "n1", "n4"])
        meta = s.get_mainline_moves()
        self.assertEqual([m.ply for m in meta], [1, 2, 3])
        self.assertEqual([m.variation_count for m in meta], [0, 1, 0])

    def test_broken_tree_degrades(self):
        s = self.session
        s.go_start()
        del s.tree.nodes_by_id["n2"]
        self.assertEqual(s.get_mainline_node_ids(), ["n0", "n1"])
        self.assertEqual(len(s.get_move_list_view_model().rows), 1)

    def test_missing_cursor_raises(self):
        s = self.session
        del s.tree.nodes_by_id[s.current_node_id]
        with self.assertRaises(ExplorerInvariantError):
            s.get_current_node()


class MaterialTests(unittest.TestCase):
    def setUp(self):
        self.session = ExplorerSession()

    def test_initial_material(self):
        m = self.session.get_material()
        self.assertEqual(m.score_by_side, {"white": 39, "black": 39})
        self.assertEqual(m.diff, 0)
        self.assertIsNone(m.leading_side)
        self.assertEqual(m.by_side["black"]["p"], 8)

    def test_captures_follow_cursor_path(self):
        s = self.session
        s.load_moves_san(["e4", "d5", "exd5", "Qxd5"], "g")
        captured = s.get_captured_pieces()
        self.assertEqual(captured.availability, "available")
        self.assertEqual(captured.by_side["white"]["p"], 1)
        self.assertEqual(captured.by_side["black"]["p"], 1)

        s.go_to_ply(3)
        captured = s.get_captured_pieces()
        self.assertEqual(captured.by_side["black"]["p"], 0)
        m = s.get_material()
        self.assertEqual(m.leading_side, "white")
        self.assertEqual(m.diff, 1)

    def test_captures_not_applicable_for_fen(self):
        self.session.load_fen(EN_PASSANT_FEN)
        captured = self.session.get_captured_pieces()
        self.assertEqual(captured.availability, "not_applicable")
        self.assertIsNone(captured.by_side)

    def test_promotion_counts_as_new_piece(self):
        s = self.session
        s.load_fen("8/4P3/8/8/8/8/k7/7K w - - 0 1")
        s.apply_move("e7", "e8", "q")
        m = s.get_material()
        self.assertEqual(m.by_side["white"]["q"], 1)
        self.assertEqual(m.by_side["white"]["p"], 0)
        self.assertEqual(m.score_by_side["white"], 9)


class HintTests(unittest.TestCase):
    def setUp(self):
        self.session = ExplorerSession()

    def test_destinations(self):
        s = self.session
        self.assertEqual(s.get_legal_destinations("e2"), ["e3", "e4"])
        self.assertEqual(s.get_legal_destinations("g1"), ["f3", "h3"])
        self.assertEqual(s.get_legal_destinations("e7"), [])
        self.assertEqual(s.get_legal_destinations("bogus"), [])
        self.assertEqual(s.get_legal_capture_destinations("e2"), [])

    def test_en_passant_is_a_capture_hint(self):
        s = self.session
        s.load_fen(EN_PASSANT_FEN)
        hints = s.get_destination_hints("E5")
        self.assertEqual(hints.destinations, ["d6", "e6"])
        self.assertEqual(hints.captures, ["d6"])


if __name__ == "__main__":
    unittest.main()
