"""Tests for BonePose and BonePoseSet animated-matrix derivation."""

import numpy as np
import pytest

from boneforge.core.math_utils import (
    mat4_translation, quat_from_axis_angle, transform_point, vec3,
)
from boneforge.core.transformation import Transformation, make_transformation
from boneforge.skeleton.bone_pose import BonePose
from boneforge.skeleton.bone_pose_set import BonePoseSet
from boneforge.skeleton.bone_set import BoneSet


def _arm() -> BoneSet:
    """shoulder (at y=1) -> elbow (+x 2) -> wrist (+x 1); indices authored in reverse."""
    bones = BoneSet()
    shoulder = bones.add_bone(make_transformation(translation=[0, 1, 0]), 2)
    elbow = bones.add_bone(make_transformation(translation=[2, 0, 0]), 1)
    wrist = bones.add_bone(make_transformation(translation=[1, 0, 0]), 0)
    bones.relate(shoulder, elbow)
    bones.relate(elbow, wrist)
    bones.resolve()
    bones.derive_matrices()
    return bones


def test_rest_pose_gives_identity_skinning():
    poses = BonePoseSet(_arm())
    assert poses.update(1)
    for m in poses.data:
        np.testing.assert_array_almost_equal(m, np.eye(4))


def test_pose_init_copies_rest_transformation():
    bones = _arm()
    pose = BonePose(bones.bone(1))
    assert pose.transformation.is_close(bones.bone(1).transformation)
    pose.transformation.translation[0] = 50.0
    assert bones.bone(1).transformation.translation[0] == 2.0
    assert pose.transformation.translation[0] == 2.0
    np.testing.assert_array_almost_equal(pose.pbtp, mat4_translation(2, 0, 0))


def test_set_transformation_and_reset():
    bones = _arm()
    pose = BonePose(bones.bone(1))
    pose.set_transformation(make_transformation(translation=[5, 0, 0]))
    np.testing.assert_array_almost_equal(pose.pbtp, mat4_translation(5, 0, 0))
    pose.transformation_reset()
    assert pose.transformation.is_close(bones.bone(1).transformation)
    np.testing.assert_array_almost_equal(pose.pbtp, mat4_translation(2, 0, 0))


def test_derive_animation_root_and_child():
    bones = _arm()
    root = BonePose(bones.bone(0))
    child = BonePose(bones.bone(1))
    btm = root.derive_animation(True, np.zeros((4, 4)))
    np.testing.assert_array_almost_equal(btm, root.pbtp)
    child_btm = child.derive_animation(False, btm)
    np.testing.assert_array_almost_equal(child_btm, btm @ child.pbtp)
    np.testing.assert_array_almost_equal(child.animated_mtm, child_btm @ bones.bone(1).mtb)


def test_output_scattered_by_matrix_index():
    bones = _arm()
    poses = BonePoseSet(bones)
    # Bend the elbow 90 degrees about z
    bent = make_transformation(
        translation=[2, 0, 0], rotation=quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2))
    poses.pose(1).set_transformation(bent)
    poses.update(1)

    # A mesh vertex at the wrist rest position (3, 1, 0)
    wrist_vertex = vec3(3, 1, 0)
    elbow_slot = bones.bone(1).matrix_index
    wrist_slot = bones.bone(2).matrix_index
    assert (elbow_slot, wrist_slot) == (1, 0)
    np.testing.assert_array_almost_equal(
        transform_point(poses.data[wrist_slot], wrist_vertex), [2, 2, 0])
    np.testing.assert_array_almost_equal(
        transform_point(poses.data[elbow_slot], wrist_vertex), [2, 2, 0])
    # The shoulder is not posed, so its skinning matrix stays identity
    np.testing.assert_array_almost_equal(poses.data[bones.bone(0).matrix_index], np.eye(4))


def test_update_same_tick_is_noop():
    poses = BonePoseSet(_arm())
    assert poses.update(7)
    before = poses.data.copy()
    poses.pose(0).set_transformation(make_transformation(translation=[9, 9, 9]))
    assert not poses.update(7)
    np.testing.assert_array_equal(poses.data, before)
    assert poses.update(8)
    assert not np.allclose(poses.data, before)


def test_first_update_always_recomputes():
    poses = BonePoseSet(_arm())
    assert poses.last_updated is None
    assert poses.update(0)
    assert poses.last_updated == 0


def test_reset_restores_rest_pose():
    poses = BonePoseSet(_arm())
    poses.pose(2).set_transformation(make_transformation(translation=[0, 3, 0]))
    poses.reset()
    poses.update(1)
    for m in poses.data:
        np.testing.assert_array_almost_equal(m, np.eye(4))


def test_data_sized_by_max_index():
    bones = BoneSet()
    bones.add_bone(Transformation(), 3)
    bones.resolve()
    bones.derive_matrices()
    poses = BonePoseSet(bones)
    assert poses.data.shape == (4, 4, 4)
    assert len(poses) == 1
    poses.update(1)
    np.testing.assert_array_almost_equal(poses.data[3], np.eye(4))
    np.testing.assert_array_equal(poses.data[0], np.zeros((4, 4)))


def test_branching_tree_uses_depth_scratch():
    bones = BoneSet()
    root = bones.add_bone(make_transformation(translation=[0, 1, 0]), 0)
    left = bones.add_bone(make_transformation(translation=[-1, 0, 0]), 1)
    left_tip = bones.add_bone(make_transformation(translation=[-1, 0, 0]), 2)
    right = bones.add_bone(make_transformation(translation=[1, 0, 0]), 3)
    bones.relate(root, left)
    bones.relate(left, left_tip)
    bones.relate(root, right)
    bones.resolve()
    bones.derive_matrices()
    poses = BonePoseSet(bones)
    lift = make_transformation(translation=[0, 5, 0])
    poses.pose(root).set_transformation(lift)
    poses.update(1)
    # Lifting the root by 4 moves every skinned vertex by 4
    for slot in range(4):
        np.testing.assert_array_almost_equal(
            transform_point(poses.data[slot], vec3(0.3, 0.2, 0.1)), [0.3, 4.2, 0.1])
    # The right branch must not inherit the left branch's depth-2 matrix
    np.testing.assert_array_almost_equal(
        poses.pose(right).animated_btm, mat4_translation(1, 5, 0))


def test_gl_data_layout():
    poses = BonePoseSet(_arm())
    poses.pose(0).set_transformation(make_transformation(translation=[0, 4, 0]))
    poses.update(1)
    flat = poses.gl_data()
    assert flat.dtype == np.float32
    assert flat.shape == (3 * 16,)
    shoulder_slot = 2
    np.testing.assert_array_almost_equal(flat[shoulder_slot * 16 + 12:shoulder_slot * 16 + 15],
                                         [0, 3, 0])


def test_unresolved_set_cannot_animate():
    bones = _arm()
    poses = BonePoseSet(bones)
    bones.add_bone(Transformation(), 3)
    with pytest.raises(RuntimeError):
        poses.derive_animation()


def test_empty_set_updates_to_empty_output():
    bones = BoneSet()
    bones.resolve()
    poses = BonePoseSet(bones)
    assert poses.update(1)
    assert poses.data.shape == (0, 4, 4)
    assert poses.gl_data().shape == (0,)
    assert not poses.update(1)


def test_pose_transformation_edits_go_through_setter():
    bones = _arm()
    pose = BonePose(bones.bone(1))
    pose.transformation.translate([0, 7, 0])
    np.testing.assert_array_almost_equal(pose.transformation.translation, [2, 0, 0])
    np.testing.assert_array_almost_equal(pose.pbtp, mat4_translation(2, 0, 0))
    pose.set_transformation(pose.transformation.translate([0, 7, 0]))
    np.testing.assert_array_almost_equal(pose.pbtp, mat4_translation(2, 7, 0))
