"""Tests for the scoped runtime handle."""

import io
import logging

import numpy as np
import pytest

from dice_core import DeformationMap, Runtime, SamplingParameters, Subset


class TestRuntime:
    """Tests for Runtime."""

    def test_verbose_sink(self):
        """Test verbose runs write diagnostics to the stream."""
        stream = io.StringIO()

        with Runtime(verbose=True, stream=stream):
            logging.getLogger("dice_core.test").info("hello from the core")

        assert "hello from the core" in stream.getvalue()

    def test_verbose_sink_not_duplicated(self):
        """Test verbose output is not repeated by handlers on the root logger."""
        stream = io.StringIO()
        root_stream = io.StringIO()
        root_handler = logging.StreamHandler(root_stream)
        root_logger = logging.getLogger()
        root_logger.addHandler(root_handler)
        try:
            with Runtime(verbose=True, stream=stream):
                logging.getLogger("dice_core.test").info("only once")
        finally:
            root_logger.removeHandler(root_handler)

        assert stream.getvalue().count("only once") == 1
        assert "only once" not in root_stream.getvalue()

    def test_silent_sink(self, capsys):
        """Test silent runs discard diagnostics."""
        with Runtime(verbose=False):
            logging.getLogger("dice_core.test").warning("should not appear")

        captured = capsys.readouterr()
        assert "should not appear" not in captured.out
        assert "should not appear" not in captured.err

    def test_restores_logger_on_error(self):
        """Test the sink is removed when the block raises."""
        package_logger = logging.getLogger("dice_core")
        handlers = list(package_logger.handlers)
        level = package_logger.level
        propagate = package_logger.propagate

        with pytest.raises(ZeroDivisionError):
            with Runtime(verbose=True, stream=io.StringIO()):
                1 / 0

        assert package_logger.handlers == handlers
        assert package_logger.level == level
        assert package_logger.propagate == propagate

    def test_executor_lifecycle(self):
        """Test the pool only exists while the runtime is active."""
        runtime = Runtime(num_threads=2)

        with pytest.raises(RuntimeError):
            runtime.executor

        with runtime:
            assert runtime.active
            assert list(runtime.map(lambda v: v * 2, [1, 2, 3])) == [2, 4, 6]

        assert not runtime.active
        with pytest.raises(RuntimeError):
            runtime.executor

    def test_not_reentrant(self):
        """Test an active runtime cannot be entered again."""
        with Runtime() as runtime:
            with pytest.raises(RuntimeError):
                runtime.__enter__()

    def test_invalid_threads(self):
        """Test thread count validation."""
        with pytest.raises(ValueError):
            Runtime(num_threads=0)

    def test_from_parameters(self):
        """Test creation from sampling parameters."""
        runtime = Runtime.from_parameters(SamplingParameters(num_threads=3, verbose=True))

        assert runtime.num_threads == 3
        assert runtime.verbose

    def test_parallel_subsets(self, large_speckle_image):
        """Test distinct subsets sampled on the pool match serial sampling."""
        centroids = [(x, y) for x in range(60, 340, 60) for y in range(60, 340, 60)]
        deformation = DeformationMap(u=1.25, v=-0.5, theta=0.02)

        def run(centroid):
            subset = Subset.from_rectangle(centroid[0], centroid[1], 31, 31)
            subset.initialize(large_speckle_image)
            subset.initialize(large_speckle_image, deformation)
            return subset

        with Runtime(num_threads=4) as runtime:
            parallel = list(runtime.map(run, centroids))
        serial = [run(c) for c in centroids]

        for p, s in zip(parallel, serial):
            np.testing.assert_array_equal(p.def_buffer, s.def_buffer)
