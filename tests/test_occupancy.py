"""Tests for the occupancy index."""

from kinlayout.occupancy import OccupancyIndex, MAX_PROBE_ROUNDS


class TestMarking:
    """Test marking and unmarking."""

    def test_mark_and_query(self):
        """Test marked points are occupied."""
        occ = OccupancyIndex()
        occ.mark_occupied(10, 0)
        assert occ.is_occupied(10, 0)
        assert (10, 0) in occ
        assert not occ.is_occupied(10, 200)
        assert len(occ) == 1

    def test_unmark(self):
        """Test unmarking frees the point and empty levels."""
        occ = OccupancyIndex()
        occ.mark_occupied(10, 0)
        occ.unmark_occupied(10, 0)
        assert not occ.is_occupied(10, 0)
        assert occ.levels() == []

    def test_unmark_missing_is_ignored(self):
        """Test unmarking a free point does nothing."""
        occ = OccupancyIndex()
        occ.unmark_occupied(5, 5)
        occ.mark_occupied(1, 5)
        occ.unmark_occupied(2, 5)
        assert occ.occupied_at(5) == [1]

    def test_multiset(self):
        """Test two marks at one point need two unmarks."""
        occ = OccupancyIndex()
        occ.mark_occupied(0, 0)
        occ.mark_occupied(0, 0)
        occ.unmark_occupied(0, 0)
        assert occ.is_occupied(0, 0)
        occ.unmark_occupied(0, 0)
        assert not occ.is_occupied(0, 0)

    def test_levels_and_iteration(self):
        """Test levels and iteration are sorted."""
        occ = OccupancyIndex()
        occ.mark_occupied(30, 200)
        occ.mark_occupied(-10, 0)
        occ.mark_occupied(10, 0)
        assert occ.levels() == [0, 200]
        assert list(occ) == [(-10, 0), (10, 0), (30, 200)]

    def test_clear(self):
        """Test clear empties the index."""
        occ = OccupancyIndex()
        occ.mark_occupied(0, 0)
        occ.clear()
        assert len(occ) == 0


class TestAvailability:
    """Test is_available."""

    def test_empty_level(self):
        """Test any point on an empty level is available."""
        assert OccupancyIndex().is_available(0, 0, 100)

    def test_clearance(self):
        """Test clearance is checked against both neighbours."""
        occ = OccupancyIndex()
        occ.mark_occupied(0, 0)
        occ.mark_occupied(300, 0)
        assert not occ.is_available(50, 0, 100)
        assert not occ.is_available(250, 0, 100)
        assert occ.is_available(150, 0, 100)

    def test_exact_spacing_is_available(self):
        """Test a gap of exactly min_spacing is allowed."""
        occ = OccupancyIndex()
        occ.mark_occupied(0, 0)
        assert occ.is_available(100, 0, 100)
        assert occ.is_available(-100, 0, 100)

    def test_other_level_ignored(self):
        """Test marks on other levels do not interfere."""
        occ = OccupancyIndex()
        occ.mark_occupied(0, 200)
        assert occ.is_available(0, 0, 100)


class TestFindNearestAvailable:
    """Test find_nearest_available."""

    def test_free_point_returned(self):
        """Test a free preferred point is kept."""
        assert OccupancyIndex().find_nearest_available(42, 0, 100) == 42

    def test_right_first(self):
        """Test the right side is probed first by default."""
        occ = OccupancyIndex()
        occ.mark_occupied(0, 0)
        assert occ.find_nearest_available(0, 0, 100) == 100

    def test_prefer_left(self):
        """Test prefer_left probes the left side first."""
        occ = OccupancyIndex()
        occ.mark_occupied(0, 0)
        assert occ.find_nearest_available(0, 0, 100, prefer_left=True) == -100

    def test_falls_to_other_side(self):
        """Test the other side is used when the preferred side is blocked."""
        occ = OccupancyIndex()
        occ.mark_occupied(0, 0)
        occ.mark_occupied(100, 0)
        assert occ.find_nearest_available(0, 0, 100) == -100

    def test_widening_probe(self):
        """Test probes grow outward by min_spacing."""
        occ = OccupancyIndex()
        for x in (-100, 0, 100):
            occ.mark_occupied(x, 0)
        assert occ.find_nearest_available(0, 0, 100) == 200

    def test_exhausted_returns_preferred(self):
        """Test best effort when every probe is blocked."""
        occ = OccupancyIndex()
        for k in range(-MAX_PROBE_ROUNDS, MAX_PROBE_ROUNDS + 1):
            occ.mark_occupied(k * 10, 0)
        assert occ.find_nearest_available(0, 0, 10) == 0
