from spacepad.core.config import DEFAULT_PRESET
from spacepad.core.types import Orientation, OrientationSample
from spacepad.interpreter.tilt import TiltGenerator


def o(t, beta, gamma):
    return OrientationSample(t_ms=t, orientation=Orientation(alpha=0.0, beta=beta, gamma=gamma))


def generator():
    return TiltGenerator(DEFAULT_PRESET.tilt)


def test_first_sample_after_enable_emits_flag_change():
    g = generator()
    g.enable(0, Orientation(0.0, 10.0, 20.0))
    sig = g.update(o(0, 10.0, 20.0))
    assert sig is not None
    assert (sig.tilt_x, sig.tilt_z, sig.transmitting) == (0.0, 0.0, True)


def test_interval_and_delta_gates():
    g = generator()
    g.enable(0, Orientation(0.0, 10.0, 20.0))
    g.update(o(0, 10.0, 20.0))

    assert g.update(o(10, 15.0, 20.0)) is None          # too soon
    sig = g.update(o(60, 15.0, 20.0))
    assert sig is not None and sig.tilt_x == 5.0
    assert g.update(o(120, 15.3, 20.0)) is None         # below delta
    sig = g.update(o(180, 15.3, 19.0))
    assert sig is not None and sig.tilt_z == -1.0


def test_emissions_never_closer_than_interval():
    g = generator()
    g.enable(0, Orientation(0.0, 0.0, 0.0))
    times = []
    for i in range(100):
        sig = g.update(o(i * 10, float(i % 30), float(-i % 17)))
        if sig is not None:
            times.append(sig.t_ms)
    assert len(times) > 2
    assert all(b - a >= 50 for a, b in zip(times, times[1:]))


def test_clamped_to_ninety():
    g = generator()
    g.enable(0, Orientation(0.0, -10.0, 50.0))
    sig = g.update(o(0, 170.0, -80.0))
    assert sig.tilt_x == 90.0
    assert sig.tilt_z == -90.0


def test_lazy_neutral_when_none_known():
    g = generator()
    g.enable(0, None)
    assert g.neutral is None
    assert not g.active
    sig = g.update(o(5, 33.0, -12.0))
    assert g.neutral == Orientation(0.0, 33.0, -12.0)
    assert (sig.tilt_x, sig.tilt_z) == (0.0, 0.0)


def test_disable_forces_final_zeroed_emission():
    g = generator()
    g.enable(0, Orientation(0.0, 0.0, 0.0))
    g.update(o(0, 0.0, 0.0))
    g.update(o(60, 30.0, 0.0))

    sig = g.disable(61)                                 # 1 ms after last emission
    assert sig is not None
    assert (sig.tilt_x, sig.tilt_z, sig.transmitting) == (0.0, 0.0, False)
    assert g.neutral is None
    assert g.update(o(200, 45.0, 45.0)) is None
    assert g.disable(300) is None


def test_reenable_captures_fresh_neutral():
    g = generator()
    first = Orientation(0.0, 10.0, 10.0)
    second = Orientation(0.0, -25.0, 40.0)
    g.enable(0, first)
    g.disable(100)
    g.enable(200, second)
    assert g.neutral == second
    assert g.neutral != first
