"""Tests for the field visualizer engine."""

import numpy as np
import pytest

from motionfields.core.drift import MotionMode
from motionfields.engine import FieldVisualizer
from motionfields.io.presets import PresetExporter
from motionfields.render.field import FieldConfig
from motionfields.scheduler import ManualScheduler

DT = 1.0 / 60.0


def _make_engine(**kwargs):
    params = dict(
        width=400,
        height=300,
        config=FieldConfig(min_radius=10.0, max_radius=80.0),
        seed=7,
        scheduler=ManualScheduler(),
    )
    params.update(kwargs)
    return FieldVisualizer(**params)


class TestLifecycle:
    def test_start_requests_one_frame(self, engine):
        engine.start()
        assert engine.is_running
        assert engine.scheduler.pending == 1

    def test_start_is_idempotent(self, engine):
        engine.start()
        engine.start()
        assert engine.scheduler.pending == 1

    def test_running_loop_keeps_one_frame_queued(self, engine, clock):
        frames = []
        engine.on_frame = frames.append
        engine.start()
        for _ in range(3):
            clock.advance(DT)
            engine.scheduler.run_pending()

        assert len(frames) == 3
        assert engine.scheduler.pending == 1
        assert engine.time == pytest.approx(3 * DT)

    def test_stop_cancels_pending_frame(self, engine):
        engine.start()
        engine.stop()
        assert not engine.is_running
        assert engine.scheduler.pending == 0
        assert engine.scheduler.run_pending() == 0

    def test_stop_is_idempotent(self, engine):
        engine.stop()
        engine.start()
        engine.stop()
        engine.stop()
        assert not engine.is_running

    def test_late_callback_after_stop_does_nothing(self, engine):
        engine.start()
        engine.stop()
        engine._on_animation_frame()
        assert engine.frame is None
        assert engine.scheduler.pending == 0

    def test_restart_after_stop(self, engine):
        engine.start()
        engine.stop()
        engine.start()
        assert engine.scheduler.pending == 1

    def test_render_static_does_not_start(self, engine):
        frame = engine.render_static()
        assert frame.shape == (300, 400, 3)
        assert not engine.is_running
        assert engine.scheduler.pending == 0

    def test_clock_gaps_are_clamped(self, engine, clock):
        engine.start()
        clock.advance(5.0)
        engine.scheduler.run_pending()
        assert engine.time == pytest.approx(0.1)

    def test_frame_output(self, engine):
        frames = []
        engine.on_frame = frames.append
        frame = engine.tick(DT)
        assert frame.dtype == np.uint8
        assert frame.shape == (300, 400, 3)
        assert frames[0] is frame


class TestAmplitudePipeline:
    def test_no_source_is_silence(self):
        engine = _make_engine()
        engine.tick(DT)
        assert all(v == 0.0 for v in engine.amplitudes.values())

    def test_source_not_ready_is_not_queried(self, engine, static_source):
        static_source.ready = False
        static_source.values = {"bass": 1.0}
        engine.tick(DT)
        assert static_source.calls == 0
        assert engine.amplitudes["bass"] == 0.0

    def test_bad_values_are_zeroed(self, engine, static_source):
        static_source.values = {"bass": float("nan"), "mid": 4.0, "treble": -1.0}
        engine.tick(DT)
        assert engine.amplitudes["bass"] == 0.0
        assert engine.amplitudes["mid"] == 1.0
        assert engine.amplitudes["treble"] == 0.0

    def test_instant_attack(self, engine, static_source):
        static_source.values = {"bass": 1.0}
        engine.tick(DT)
        assert engine.amplitudes["bass"] == pytest.approx(1.0)

    def test_slow_attack(self, engine, static_source):
        engine.set_control_params({"attack": 100})
        static_source.values = {"bass": 1.0}
        engine.tick(DT)
        assert 0.0 < engine.amplitudes["bass"] < 0.1

    def test_slow_decay(self, engine, static_source):
        engine.set_control_params({"decay": 100})
        static_source.values = {"bass": 1.0}
        engine.tick(DT)
        static_source.values = {}
        engine.tick(DT)
        assert engine.amplitudes["bass"] > 0.95

    def test_zero_emphasis_mutes_group(self, engine, static_source):
        engine.set_control_params({"lowEmphasis": 0})
        static_source.values = {"bass": 0.8, "lowerMid": 0.8, "mid": 0.8}
        engine.tick(DT)
        assert engine.amplitudes["bass"] == 0.0
        assert engine.amplitudes["lowerMid"] == 0.0
        assert engine.amplitudes["mid"] == pytest.approx(0.8)

    def test_compression_applies_after_smoothing(self, engine, static_source):
        engine.set_control_params({"compression": 100})
        static_source.values = {"bass": 1.0}
        engine.tick(DT)
        assert engine.amplitudes["bass"] == pytest.approx(0.6)
        assert engine.amplitudes["treble"] == pytest.approx(0.4)

    def test_louder_bands_draw_bigger(self, engine, static_source):
        static_source.values = {"bass": 1.0, "mid": 0.1}
        engine.tick(DT)
        sprites = {s.name: s for s in engine.sprites}
        assert sprites["bass"].radius > sprites["mid"].radius
        assert sprites["bass"].opacity > sprites["mid"].opacity

    def test_silence_still_draws_minimum_blobs(self, engine):
        engine.tick(DT)
        for sprite in engine.sprites:
            assert sprite.radius == pytest.approx(10.0 * 0.3)
            assert sprite.opacity > 0

    def test_reset(self, engine, static_source):
        static_source.values = {"bass": 1.0}
        for _ in range(30):
            engine.tick(DT)
        engine.reset()
        assert engine.time == 0.0
        assert all(v == 0.0 for v in engine.amplitudes.values())
        assert all(offset == (0.0, 0.0) for offset in engine.drift.offsets().values())


class TestPositions:
    def test_initial_anchors_inside_padding(self, engine):
        for x, y in engine.anchors.values():
            assert 100.0 <= x <= 300.0
            assert 100.0 <= y <= 200.0

    def test_seeded_engines_agree(self):
        a, b = _make_engine(seed=11), _make_engine(seed=11)
        assert a.anchors == b.anchors

    def test_instances_are_independent(self):
        a, b = _make_engine(seed=11), _make_engine(seed=11)
        a.set_control_params({"drift": 0})
        a.set_anchor_positions({"bass": (0, 0)})
        assert b.controls.drift == 50
        assert b.anchors["bass"] != a.anchors["bass"]

    def test_shared_config_is_not_shared_viewport(self, rng):
        from motionfields.render.grain import generate_grain_texture

        cfg = FieldConfig(min_radius=10.0, max_radius=80.0)
        a = _make_engine(width=400, height=300, config=cfg)
        b = _make_engine(width=640, height=480, config=cfg)
        assert (a.width, a.height) == (400, 300)
        assert (cfg.width, cfg.height) == (1920, 1080)

        b.resize(250, 250)
        a.set_grain_texture(generate_grain_texture(64, rng=rng, softness=0))
        a.set_control_params({"grain": 50})
        frame = a.tick(DT)
        assert frame.shape == (300, 400, 3)
        assert (b.width, b.height) == (250, 250)

    def test_normalized_anchors(self, engine):
        engine.set_anchor_positions({"bass": (50, 50)}, space="normalized")
        assert engine.anchors["bass"] == pytest.approx((200.0, 150.0))

    def test_pixel_anchors_are_clamped(self, engine):
        engine.set_anchor_positions({"bass": (0, 0), "mid": (1000, 1000)})
        assert engine.anchors["bass"] == (100.0, 100.0)
        assert engine.anchors["mid"] == (300.0, 200.0)

    def test_list_form(self, engine):
        engine.set_anchor_positions([(150, 150)] * 5)
        assert all(p == (150.0, 150.0) for p in engine.anchors.values())

    def test_unknown_band_is_ignored(self, engine):
        before = dict(engine.anchors)
        engine.set_anchor_positions({"subsonic": (150, 150)})
        assert engine.anchors == before

    def test_unknown_space(self, engine):
        with pytest.raises(ValueError):
            engine.set_anchor_positions({"bass": (1, 2)}, space="polar")

    def test_emphasis_positions_move_whole_group(self, engine):
        treble_before = engine.anchors["treble"]
        engine.set_emphasis_positions({"low": (25, 50), "nope": (1, 1)})

        assert engine.anchors["bass"] == pytest.approx((100.0, 150.0))
        assert engine.anchors["lowerMid"] == pytest.approx((100.0, 150.0))
        assert engine.anchors["treble"] == treble_before

        normalized = engine.get_anchor_positions("normalized")
        assert normalized["bass"] == pytest.approx((25.0, 50.0))

    def test_new_anchor_restarts_drift(self, engine):
        engine.set_control_params({"drift": 100, "anchor": 0})
        for _ in range(120):
            engine.tick(DT)
        engine.set_anchor_positions({"bass": (200, 150)})
        assert engine.drift.offset("bass") == (0.0, 0.0)

    def test_render_positions_stay_on_screen(self, engine):
        engine.set_control_params({"drift": 100, "anchor": 0})
        for _ in range(600):
            engine.tick(DT)
            for x, y in engine.render_positions().values():
                assert 50.0 <= x <= 350.0
                assert 50.0 <= y <= 250.0

    def test_zero_drift_settles_on_anchors(self, engine):
        engine.set_control_params({"drift": 100, "anchor": 0})
        for _ in range(120):
            engine.tick(DT)
        engine.set_control_params({"drift": 0})
        for _ in range(200):
            engine.tick(DT)

        assert engine.render_positions() == engine.anchors
        assert all(s.mode is MotionMode.ANCHORED for s in engine.drift.states.values())

    def test_random_positions_change_anchors(self, engine):
        before = dict(engine.anchors)
        engine.generate_random_positions()
        assert engine.anchors != before

    def test_resize_pulls_anchors_in(self, engine):
        engine.resize(250, 250)
        for x, y in engine.anchors.values():
            assert 100.0 <= x <= 150.0
            assert 100.0 <= y <= 150.0
        assert engine.tick(DT).shape == (250, 250, 3)

    def test_tiny_canvas_centers_anchors(self, engine):
        engine.resize(150, 120)
        assert all(p == (75.0, 60.0) for p in engine.anchors.values())


class TestColors:
    def test_control_colors_ignore_background(self, engine):
        engine.set_control_colors({"background": "#ffffff", "lowEmphasis": "#00ff00"})
        assert engine.colors.background == "#1a1a2e"
        assert engine.colors.tint_for("lowEmphasis") == "#00ff00"

    def test_set_color(self, engine):
        engine.set_color("background", "#FFFFFF")
        assert engine.colors.background == "#ffffff"
        assert engine.renderer.blend_mode(engine.colors) == "multiply"

    def test_dark_frame_never_below_background(self, engine, static_source):
        static_source.values = {"bass": 1.0, "mid": 0.5, "treble": 0.2}
        frame = engine.tick(DT)
        assert np.all(frame >= np.array((26, 26, 46), dtype=np.uint8))

    def test_light_frame_never_above_background(self, engine, static_source):
        engine.set_color("background", "#f0f0f0")
        static_source.values = {"bass": 1.0, "mid": 0.5, "treble": 0.2}
        frame = engine.tick(DT)
        assert np.all(frame <= 240)
        assert frame.min() < 200

    def test_harmonious_colors(self, engine):
        colors = engine.generate_harmonious_colors()
        assert engine.colors.to_dict() == colors


class TestPresets:
    def test_apply_preset(self, engine):
        engine.apply_preset({
            "controls": {"drift": 20, "fieldScale": 75},
            "colors": {"background": "#000000", "highEmphasis": "#123456"},
            "anchors": {"space": "normalized", "positions": {"mid": [50, 50]}},
        })
        assert engine.controls.drift == 20
        assert engine.controls.field_scale == 75
        assert engine.colors.background == "#000000"
        assert engine.colors.tint_for("highEmphasis") == "#123456"
        assert engine.anchors["mid"] == pytest.approx((200.0, 150.0))

    def test_round_trip_between_engines(self, engine):
        engine.set_control_params({"grain": 30, "overlap": 80})
        exporter = PresetExporter()
        preset = exporter.build_preset(engine.controls, engine.colors, engine.get_anchor_positions())

        other = _make_engine(seed=99)
        other.apply_preset(preset)
        assert other.controls == engine.controls
        assert other.colors == engine.colors
        for name, point in engine.anchors.items():
            assert other.anchors[name] == pytest.approx(point, abs=0.01)

    def test_empty_preset_changes_nothing(self, engine):
        before = engine.controls.to_dict()
        engine.apply_preset({})
        assert engine.controls.to_dict() == before


class TestGrain:
    def test_grain_texture_shows_up(self, engine, static_source, rng):
        from motionfields.render.grain import generate_grain_texture

        static_source.values = {"bass": 1.0}
        plain = engine.tick(DT).copy()

        engine.set_grain_texture(generate_grain_texture(64, rng=rng, softness=0))
        engine.set_control_params({"grain": 100})
        engine.tick(0.0)
        assert not np.array_equal(plain, engine.frame)



class TestScenarios:
    def test_silence_is_stable(self, engine):
        for _ in range(5):
            engine.tick(DT)
            for sprite in engine.sprites:
                assert sprite.radius == pytest.approx(10.0 * 0.3)
                assert sprite.opacity == pytest.approx(0.03 + 0.15)

    def test_jump_reaches_full_radius_in_one_frame(self, engine, static_source):
        engine.tick(DT)
        static_source.values = {"treble": 1.0}
        engine.tick(DT)
        treble = [s for s in engine.sprites if s.name == "treble"][0]
        assert treble.radius >= 0.99 * 80.0 * 0.3

    def test_slow_attack_factor(self, engine, static_source):
        engine.set_control_params({"attack": 100})
        static_source.values = {"treble": 1.0}
        engine.tick(DT)
        assert engine.amplitudes["treble"] == pytest.approx(1.0 - np.exp(-0.05), rel=1e-6)

    def test_background_switches_mode_and_ranges(self, engine, static_source):
        static_source.values = {"bass": 1.0}

        engine.set_color("background", "#1a1a2e")
        engine.tick(DT)
        dark = {s.name: s for s in engine.sprites}
        assert engine.renderer.blend_mode(engine.colors) == "screen"

        engine.set_color("background", "#f5f5f5")
        engine.tick(DT)
        light = {s.name: s for s in engine.sprites}
        assert engine.renderer.blend_mode(engine.colors) == "multiply"

        assert light["bass"].radius == pytest.approx(dark["bass"].radius * 1.5)
        assert light["treble"].opacity == pytest.approx(0.15 + 0.15)
        assert dark["treble"].opacity == pytest.approx(0.03 + 0.15)
