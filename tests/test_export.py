"""
Tests for matrix input, Polars frames, text report and saved files.
"""

import numpy as np
import polars as pl
import pytest

from mtcami.db.export import (
    format_report,
    measures_frame,
    probability_frame,
    save_results,
    trace_frame,
    windowed_frame,
)
from mtcami.db.polars_io import read_matrix, write_parquet_atomic
from mtcami.information.confidence import confidence_margins
from mtcami.information.engine import CaMIEngine


@pytest.fixture
def config(make_config):
    return make_config(units='bits')


@pytest.fixture
def small_pair(rng):
    cause = rng.random((30, 4))
    return cause, np.roll(cause, 1, axis=0)


@pytest.fixture
def result(small_pair, config):
    return CaMIEngine(config).run(*small_pair)


class TestReadMatrix:

    def test_csv(self, tmp_path):
        path = tmp_path / 'x.csv'
        path.write_text('0.1,0.2\n0.3,0.4\n0.5,0.6\n')
        matrix = read_matrix(path)

        assert matrix.shape == (3, 2)
        np.testing.assert_allclose(matrix[:, 1], [0.2, 0.4, 0.6])

    def test_npy_one_dimensional(self, tmp_path):
        path = tmp_path / 'x.npy'
        np.save(path, np.arange(5.0))
        assert read_matrix(path).shape == (5, 1)

    def test_parquet(self, tmp_path):
        path = tmp_path / 'x.parquet'
        pl.DataFrame({'a': [1.0, 2.0], 'b': [3.0, 4.0]}).write_parquet(path)
        np.testing.assert_allclose(read_matrix(path), [[1.0, 3.0], [2.0, 4.0]])

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_matrix(tmp_path / 'missing.csv')

    def test_unsupported(self, tmp_path):
        path = tmp_path / 'x.json'
        path.write_text('[]')
        with pytest.raises(ValueError):
            read_matrix(path)

    def test_atomic_write_leaves_no_temp(self, tmp_path):
        path = tmp_path / 'out' / 'frame.parquet'
        n = write_parquet_atomic(pl.DataFrame({'a': [1, 2, 3]}), path)

        assert n == 3
        assert path.exists()
        assert not list(path.parent.glob('*.partial'))


class TestFrames:

    def test_measures_frame(self, result):
        df = measures_frame(result)

        assert df.height == 1
        assert df['cami_xy'][0] == pytest.approx(result.cami_xy)
        assert df['units'][0] == 'bits'

    def test_trace_frame(self, result):
        df = trace_frame(result)

        assert df.height == 30 * 4
        # anchors are [1, 29): rows 0 and 29 are undefined
        undefined = df.filter(~pl.col('defined'))
        assert undefined.height == 2 * 4
        assert undefined['phi_x'].null_count() == undefined.height
        assert df.filter(pl.col('defined'))['phi_yf'].null_count() == 0

    def test_trace_frame_requires_trace(self, small_pair, config):
        engine = CaMIEngine(config)
        bare = engine.analyze(*engine.prepare(*small_pair), keep_trace=False)
        with pytest.raises(ValueError):
            trace_frame(bare)

    def test_probability_frame_sums(self, result):
        df = probability_frame(result.trace.forward_tables)
        totals = df.group_by('table').agg(pl.col('probability').sum())

        assert set(totals['table']) == {'p_xp', 'p_yp', 'p_yf', 'p_ypf', 'p_xyp', 'p_xypf'}
        np.testing.assert_allclose(totals['probability'].to_numpy(), 1.0)

    def test_windowed_frame(self, small_pair, make_config):
        windowed = CaMIEngine(make_config(window_length=10)).run(*small_pair)
        df = windowed_frame(windowed)

        assert df.height == 20
        assert df['window_start'].to_list() == list(range(20))
        assert df['window_length'][0] == 10


class TestReport:

    def test_global_report(self, result, config):
        text = format_report(result, config)

        assert 'CaMI X->Y' in text
        assert 'Directionality Index' in text
        assert 'Units: bits' in text
        assert 'Confidence margins' not in text

    def test_report_with_margins(self, small_pair, result, config):
        margins = confidence_margins(*small_pair, config, max_runs=3, seed=0)
        text = format_report(result, config, margins)

        assert 'Confidence margins' in text
        assert 'Above margin' in text

    def test_windowed_report(self, small_pair, make_config):
        config = make_config(window_length=10)
        text = format_report(CaMIEngine(config).run(*small_pair), config)
        assert '20 windows of 11 samples' in text


class TestSaveResults:

    def test_global_files(self, tmp_path, result, config):
        written = save_results(result, tmp_path / 'run', config)

        assert set(written) == {'measures', 'pointwise', 'timeseries',
                                'probabilities_forward', 'probabilities_reverse', 'report'}
        for path in written.values():
            assert path.exists()

        pointwise = np.load(written['pointwise'])
        np.testing.assert_allclose(pointwise['pcami_xy'], result.pointwise.pcami_xy)
        assert pl.read_parquet(written['measures'])['te_xy'][0] == pytest.approx(result.te_xy)

    def test_windowed_files(self, tmp_path, small_pair, make_config):
        config = make_config(window_length=10)
        written = save_results(CaMIEngine(config).run(*small_pair), tmp_path, config)

        assert set(written) == {'windowed_measures', 'report'}
        assert pl.read_parquet(written['windowed_measures']).height == 20


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
