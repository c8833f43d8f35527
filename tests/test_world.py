import numpy as np
import pytest

from detector_rl.config.config import AgentConfig, WorldConfig
from detector_rl.engine.types import AgentState, PlannedObject, PlannedObstacle, SpawnPlan
from detector_rl.envs.world import AGENT_TAG, OBSTACLE_TAG, AgentSensingContext, DetectionWorld


@pytest.fixture
def world():
    return DetectionWorld(WorldConfig())


ORIGIN = np.array([0.0, 0.0, 0.5])
EAST = np.array([1.0, 0.0, 0.0])


class TestRayCast:

    def test_hits_object_surface(self, world, crate_spec):
        object_id = world.instantiate(crate_spec, [5.0, 0.0, 0.5])
        hit = world.ray_cast(ORIGIN, EAST, 20.0)
        assert hit.object_id == object_id
        assert hit.tag == "crate"
        assert hit.distance == pytest.approx(4.5)
        np.testing.assert_allclose(hit.point, [4.5, 0.0, 0.5])

    def test_nearest_body_wins(self, world, crate_spec):
        world.instantiate(crate_spec, [8.0, 0.0, 0.5])
        near = world.instantiate(PlannedObstacle(position=np.array([3.0, 0.0, 0.0])), [3.0, 0.0, 0.0])
        hit = world.ray_cast(ORIGIN, EAST, 20.0)
        assert hit.object_id == near
        assert hit.tag == OBSTACLE_TAG

    def test_misses(self, world, crate_spec):
        world.instantiate(crate_spec, [5.0, 0.0, 0.5])
        assert world.ray_cast(ORIGIN, np.array([0.0, 1.0, 0.0]), 20.0) is None
        assert world.ray_cast(ORIGIN, EAST, 3.0) is None

    def test_ignored_bodies_are_transparent(self, world, crate_spec):
        near = world.instantiate(crate_spec, [3.0, 0.0, 0.5])
        far = world.instantiate(crate_spec, [6.0, 0.0, 0.5])
        assert world.ray_cast(ORIGIN, EAST, 20.0, ignore=[near]).object_id == far


class TestQueries:

    def test_obstacle_check(self, world):
        world.instantiate(PlannedObstacle(position=np.zeros(3), scale=1.0), np.zeros(3))
        assert not world.obstacle_check(np.array([1.5, 0.0, 0.0]))
        assert world.obstacle_check(np.array([3.0, 0.0, 0.0]))

    def test_area_query_only_reports_detectables(self, world, crate_spec):
        crate = world.instantiate(crate_spec, [2.0, 0.0, 0.5])
        world.instantiate(PlannedObstacle(position=np.array([0.0, 2.0, 0.0])), [0.0, 2.0, 0.0])
        world.instantiate(crate_spec, [30.0, 0.0, 0.5])

        hits = world.area_query(ORIGIN, 5.0)
        assert [h.object_id for h in hits] == [crate]
        assert hits[0].distance == pytest.approx(2.0)


class TestSpawner:

    def test_ids_are_unique_and_never_reused(self, world, crate_spec):
        first = world.instantiate(crate_spec, [1.0, 0.0, 0.5])
        second = world.instantiate(AGENT_TAG, [0.0, 0.0, 0.5])
        world.destroy(first)
        third = world.instantiate(crate_spec, [1.0, 0.0, 0.5])
        assert len({first, second, third}) == 3
        assert first not in world.bodies

    def test_unknown_item(self, world):
        with pytest.raises(TypeError):
            world.instantiate(42, np.zeros(3))

    def test_apply_plan_and_clear(self, world, crate_spec):
        plan = SpawnPlan(
            objects=[PlannedObject(spec=crate_spec, position=np.array([4.0, 0.0, 0.5]))],
            agents=[np.array([0.0, 0.0, 0.5])],
            obstacles=[PlannedObstacle(position=np.array([-5.0, 0.0, 0.0]))]
        )
        agent_ids, object_ids = world.apply_plan(plan)
        assert len(agent_ids) == 1
        assert len(object_ids) == 1
        assert world.bodies[agent_ids[0]].tag == AGENT_TAG
        assert world.bodies[object_ids[0]].detectable
        assert len(world.bodies) == 3

        world.clear()
        assert world.bodies == {}


class TestAgents:

    def test_move_agent(self, world):
        agent_id = world.instantiate(AGENT_TAG, ORIGIN)
        agent = AgentState(position=ORIGIN.copy(), yaw=0.0, max_speed=5.0)

        world.move_agent(agent_id, agent, move=1.0, rotate=1.0, dt=0.1, agent_config=AgentConfig())

        # Velocity covers half the gap to 5 m/s in one 0.1 s step
        np.testing.assert_allclose(agent.velocity, [2.5, 0.0, 0.0])
        np.testing.assert_allclose(agent.position, [0.25, 0.0, 0.5])
        assert agent.yaw == pytest.approx(10.0)
        np.testing.assert_allclose(world.bodies[agent_id].position, agent.position)

    def test_actions_are_clipped(self, world):
        agent_id = world.instantiate(AGENT_TAG, ORIGIN)
        agent = AgentState(position=ORIGIN.copy(), yaw=0.0, max_speed=5.0)
        world.move_agent(agent_id, agent, move=4.0, rotate=-3.0, dt=0.1, agent_config=AgentConfig())
        np.testing.assert_allclose(agent.velocity, [2.5, 0.0, 0.0])
        assert agent.yaw == pytest.approx(350.0)

    def test_sensing_context_ignores_own_body(self, world, crate_spec):
        agent_id = world.instantiate(AGENT_TAG, ORIGIN)
        crate = world.instantiate(crate_spec, [1.0, 0.0, 0.5])
        agent = AgentState(position=ORIGIN.copy(), yaw=0.0)
        context = AgentSensingContext(world, agent_id, agent)

        assert [h.object_id for h in context.area_query(context.origin, 5.0)] == [crate]
        assert context.ray_cast(context.origin, EAST, 20.0).object_id == crate

    def test_viewport_cast(self, world, crate_spec):
        agent_id = world.instantiate(AGENT_TAG, ORIGIN)
        ahead = world.instantiate(crate_spec, [5.0, 0.0, 0.5])
        left = world.instantiate(crate_spec, [5.0 * np.cos(np.pi / 6), 5.0 * np.sin(np.pi / 6), 0.5])
        agent = AgentState(position=ORIGIN.copy(), yaw=0.0)
        context = AgentSensingContext(world, agent_id, agent, camera_fov=60.0)

        assert context.viewport_cast((0.5, 0.5), 20.0).object_id == ahead
        # Left edge of the viewport looks half a field of view counter-clockwise
        assert context.viewport_cast((0.0, 0.5), 20.0).object_id == left
