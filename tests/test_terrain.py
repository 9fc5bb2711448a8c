import threading

import numpy
import pytest

from railscene.geombase import qaxis_angle, rotation_matrix, transform_point, translate
from railscene.scene import BufferInfo, CopyQueue, TerrainPoint
from railscene.serialization import scene_io


def make_point(index=1):
    frame = translate([100.0, 50.0, 0.0]) @ rotation_matrix(qaxis_angle([0, 0, 1], 0.3))
    buffer = BufferInfo([[0, 0, 0], [1, 2, 3], [4, 5, 6]])
    queue = CopyQueue()
    return TerrainPoint(queue, buffer, frame, index), buffer, queue, frame


class TestTerrainPoint:
    def test_initial_position_is_world_vertex(self):
        point, buffer, queue, frame = make_point()
        assert numpy.allclose(point.position, transform_point(frame, [1, 2, 3]))
        assert queue.pending() == 0

    def test_set_position_writes_through_after_drain(self):
        point, buffer, queue, frame = make_point()
        target = numpy.array([103.0, 47.0, 8.0])

        point.set_position(target)
        assert queue.pending() == 1
        assert queue.drain() == 1

        expected = transform_point(numpy.linalg.inv(frame), target)
        assert numpy.allclose(buffer.device[1], expected, atol=1e-4)
        assert numpy.allclose(point.position, target)

    def test_device_copy_waits_for_drain(self):
        point, buffer, queue, frame = make_point()
        before = buffer.device.copy()
        point.set_position([0.0, 0.0, 0.0])
        assert numpy.array_equal(buffer.device, before)
        assert not numpy.array_equal(buffer.data, before)

    def test_other_vertices_untouched(self):
        point, buffer, queue, frame = make_point()
        point.set_position([1.0, 1.0, 1.0])
        queue.drain()
        assert numpy.allclose(buffer.device[0], [0, 0, 0])
        assert numpy.allclose(buffer.device[2], [4, 5, 6])

    def test_world_to_local_captured_once(self):
        point, buffer, queue, frame = make_point()
        inverse = point.world_to_local
        point.set_position([5.0, 5.0, 5.0])
        assert numpy.allclose(point.world_to_local, inverse)

    def test_index_out_of_range(self):
        with pytest.raises(IndexError):
            TerrainPoint(CopyQueue(), BufferInfo([[0, 0, 0]]), numpy.eye(4), 1)

    def test_not_serializable(self):
        point, buffer, queue, frame = make_point()
        with pytest.raises(scene_io.SceneFormatError):
            scene_io.dumps(point)


class TestCopyQueue:
    def test_repeated_writes_enqueue_buffer_once(self):
        point, buffer, queue, frame = make_point()
        point.set_position([1.0, 0.0, 0.0])
        point.set_position([2.0, 0.0, 0.0])
        assert queue.pending() == 1
        assert queue.drain() == 1
        assert queue.drain() == 0

    def test_points_share_queue(self):
        queue = CopyQueue()
        a = BufferInfo([[0, 0, 0]])
        b = BufferInfo([[0, 0, 0]])
        TerrainPoint(queue, a, numpy.eye(4), 0).set_position([1, 1, 1])
        TerrainPoint(queue, b, numpy.eye(4), 0).set_position([2, 2, 2])
        assert queue.drain() == 2
        assert numpy.allclose(a.device[0], [1, 1, 1])
        assert numpy.allclose(b.device[0], [2, 2, 2])

    def test_concurrent_copy_and_drain(self):
        queue = CopyQueue()
        buffers = [BufferInfo([[float(i), 0, 0]]) for i in range(200)]
        drained = []

        def producer():
            for info in buffers:
                queue.copy(info)

        def consumer():
            for _ in range(50):
                drained.append(queue.drain())

        threads = [threading.Thread(target=producer), threading.Thread(target=consumer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        drained.append(queue.drain())

        assert sum(drained) == len(buffers)
