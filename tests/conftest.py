import numpy as np
import pytest

from objects import DigitHit, TriggerLevel, DetElement


class FakeHist:
    """Records every Fill call, stands in for a ROOT histogram."""
    def __init__(self, name=""):
        self.name = name
        self.fills = []

    def Fill(self, *args):
        self.fills.append(args)


class FakeHistos(dict):
    """Creates a FakeHist on first access to any name."""
    def get(self, name, default=None):
        if name not in self:
            self[name] = FakeHist(name)
        return self[name]


@pytest.fixture
def fake_histos():
    return FakeHistos()


@pytest.fixture
def btag_levels():
    return [
        TriggerLevel("L1", "hltL1sBTagIPJet180", "L1 seed", 0),
        TriggerLevel("L2", "hltBJet180", "L2 jet", 1),
        TriggerLevel("L3", "hltBLifetimeL3Filter", "L3 b-tag", 2),
    ]


@pytest.fixture
def path_modules():
    return ["hltL1sBTagIPJet180", "hltBJet180", "hltBLifetimeL25Filter", "hltBLifetimeL3Filter", "hltBoolEnd"]


@pytest.fixture
def trigger_paths():
    return ["HLT_Jet180", "HLT_BTagIP_Jet180", "HLT_BTagMu_Jet20"]


@pytest.fixture
def digit_stream():
    return [DigitHit(5, 0), DigitHit(6, 0), DigitHit(8, 0)]


@pytest.fixture
def random_digits():
    rng = np.random.default_rng(20240611)
    rows = rng.integers(0, 20, size=200)
    cols = rng.integers(0, 3, size=200)
    return [DigitHit(int(r), int(c)) for r, c in zip(rows, cols)]


@pytest.fixture
def strip_element():
    return DetElement(rawid=303042564, layer=1, nrows=1016, ncolumns=2, ring=0, center=(22.0, 5.0, 30.0))


@pytest.fixture
def macro_pixel_element():
    return DetElement(rawid=303063044, layer=2, nrows=960, ncolumns=32, ring=0, center=(30.0, 10.0, -15.0))
