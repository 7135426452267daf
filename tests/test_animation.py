import numpy as np
import pytest

from polycube.controller.animation import cubic_in_out
from polycube.view.scene import Group


def test_cubic_in_out_shape():
    assert cubic_in_out(0.0) == 0.0
    assert cubic_in_out(0.5) == pytest.approx(0.5)
    assert cubic_in_out(1.0) == 1.0
    assert cubic_in_out(0.25) < 0.25


def test_delay_then_ease_to_target(animator, clock):
    node = Group("n")
    done = []
    animator.animate(node, "position", (10.0, 0.0, 0.0), duration=1000, delay=300,
                     on_complete=lambda target: done.append(target))

    clock.advance(200)
    assert animator.tick()
    assert node.position[0] == 0.0

    clock.advance(600)
    animator.tick()
    assert node.position[0] == pytest.approx(10.0 * cubic_in_out(0.5))

    clock.advance(1000)
    assert not animator.tick()
    np.testing.assert_allclose(node.position, [10.0, 0.0, 0.0])
    assert done == [node]


def test_start_value_taken_when_delay_elapses(animator, clock):
    node = Group("n")
    animator.animate(node, "position", (10.0, 0.0, 0.0), duration=100, delay=100)
    node.set_position(5.0, 0.0, 0.0)

    clock.advance(150)
    animator.tick()
    assert node.position[0] == pytest.approx(5.0 + 5.0 * cubic_in_out(0.5))


def test_new_tween_cancels_running_one(animator, clock):
    node = Group("n")
    completed = []
    first = animator.animate(node, "position", (10.0, 0.0, 0.0), on_complete=lambda _: completed.append("first"))
    clock.advance(500)
    animator.tick()
    second = animator.animate(node, "position", (-10.0, 0.0, 0.0), on_complete=lambda _: completed.append("second"))

    assert first.cancelled
    assert animator.active == [second]

    animator.finish_all()
    assert completed == ["second"]
    np.testing.assert_allclose(node.position, [-10.0, 0.0, 0.0])


def test_cancel_and_is_animating(animator):
    a, b = Group("a"), Group("b")
    animator.animate(a, "position", (1.0, 1.0, 1.0))
    animator.animate(b, "position", (1.0, 1.0, 1.0))

    animator.cancel(a)
    assert not animator.is_animating(a)
    assert animator.is_animating(b)

    animator.cancel_all()
    assert animator.active == []
    assert not animator.tick()


def test_finish_all_runs_staggered_tweens(animator):
    nodes = [Group(str(i)) for i in range(4)]
    for i, node in enumerate(nodes):
        animator.animate(node, "position", (0.0, float(i), 0.0), delay=i * 300)

    animator.finish_all()

    assert animator.active == []
    for i, node in enumerate(nodes):
        assert node.position[1] == float(i)
