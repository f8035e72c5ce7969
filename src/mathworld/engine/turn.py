"""回合编排：把各子系统按固定顺序串成一个回合。

顺序：清理 → 玩家选项 → NPC 决策 → 推进时间 → NPC 小动作 → 各模拟器 → 事件生成 → 环境阈值。
"""

from __future__ import annotations

import logging
import random

from pydantic import BaseModel, Field

from mathworld.config.settings import KernelConfig
from mathworld.engine.belief_system import BeliefSystem
from mathworld.engine.event_generator import EventGenerator
from mathworld.engine.feedback_loop import FeedbackLoop
from mathworld.engine.utility_ai import BASE_ACTIONS, UtilityAI
from mathworld.models.action import Action, Choice
from mathworld.models.disease import HealthState
from mathworld.models.event import GameEvent
from mathworld.models.world import InstabilityType
from mathworld.simulation.disease import DiseaseSimulation
from mathworld.simulation.economy import Economy
from mathworld.simulation.ecosystem import Ecosystem
from mathworld.simulation.weather import Weather
from mathworld.state.world_state import WorldState

logger = logging.getLogger(__name__)


class TurnReport(BaseModel):
    """一个回合内发生的事。"""

    turn: int = Field(description="回合结束时的世界时间")
    player_event: GameEvent | None = Field(default=None, description="玩家行动产生的事件")
    npc_events: list[GameEvent] = Field(default_factory=list, description="NPC 行动产生的事件")
    world_events: list[GameEvent] = Field(default_factory=list, description="事件生成器产生的事件")
    threshold_events: list[GameEvent] = Field(default_factory=list, description="环境阈值事件")
    instabilities: list[InstabilityType] = Field(default_factory=list, description="回合末的不稳定信号")
    change_summary: list[str] = Field(default_factory=list, description="玩家可感知的定性变化")

    @property
    def all_events(self) -> list[GameEvent]:
        events = [self.player_event] if self.player_event else []
        return events + self.npc_events + self.world_events + self.threshold_events


class TurnRunner:
    """持有全部子系统并逐回合推进世界。"""

    def __init__(
        self,
        world: WorldState,
        config: KernelConfig | None = None,
        rng: random.Random | None = None,
        actions: list[Action] | None = None,
    ):
        self.world = world
        self.config = config or world.config
        self.rng = rng or world.rng
        self.actions = actions if actions is not None else list(BASE_ACTIONS)

        self.utility_ai = UtilityAI(world, self.config, self.rng)
        self.feedback = FeedbackLoop(world, self.config, self.rng, is_active=self.is_alive)
        self.events = EventGenerator(world, self.config, self.rng, is_active=self.is_alive)
        self.beliefs = BeliefSystem(world)
        self.economy = Economy(world, self.rng)
        self.ecosystem = Ecosystem(world)
        self.weather = Weather(world, self.rng)
        self.disease = DiseaseSimulation(world, self.rng)

    def run_turn(
        self,
        player_choice: Choice | None = None,
        player_id: str | None = None,
        target_id: str | None = None,
    ) -> TurnReport:
        self.events.clear_recent_events()
        self.feedback.reset_accumulated_changes()

        player_event = None
        if player_choice is not None and player_id is not None:
            player_event = self.feedback.apply_choice(player_choice, player_id, target_id)

        npc_events = self._run_npc_turns()

        self.world.advance_time()
        self.events.generate_npc_actions()
        self.economy.update()
        self.ecosystem.update()
        self.weather.update()
        self.disease.update()

        world_events = self.events.generate_events()
        threshold_events = self.feedback.check_thresholds()

        report = TurnReport(
            turn=self.world.time,
            player_event=player_event,
            npc_events=npc_events,
            world_events=world_events,
            threshold_events=threshold_events,
            instabilities=self.events.detect_instability(),
            change_summary=(
                self.feedback.get_accumulated_change_summary(player_id) if player_id else []
            ),
        )
        logger.debug("第 %d 回合结束，共 %d 个事件", report.turn, len(report.all_events))
        return report

    def _run_npc_turns(self) -> list[GameEvent]:
        events: list[GameEvent] = []
        characters = self.world.get_all_characters()
        for npc in characters:
            if npc.is_player or not self.is_alive(npc.id):
                continue
            if self.rng.random() >= self.config.npc_action_chance:
                continue
            others = [c for c in characters if c.id != npc.id and self.is_alive(c.id)]
            if not others:
                continue
            target = self.rng.choice(others)
            result = self.utility_ai.select_action(npc, self.actions, target.id)
            if result is None:
                continue
            choice = Choice.for_action(
                result.action,
                calculated_utility=result.utility,
                calculated_success=self.utility_ai.success_rate(npc, result.action, target.id),
            )
            event = self.feedback.apply_choice(choice, npc.id, target.id)
            if event is not None:
                events.append(event)
        return events

    def is_alive(self, character_id: str) -> bool:
        """死于疾病的角色不再行动、目击或听闻。"""
        status = self.disease.get_health_status(character_id)
        return status is None or status.state is not HealthState.DEAD
