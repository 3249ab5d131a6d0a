"""
connect4engine.ai - Move selection

Evaluator and SafetyOracle answer tactical questions about one board;
MemoizedSearch (moderate) and DeepeningPVS (hard) search it; Connect4Engine
and StrategyDispatcher put the tiers behind one interface.
"""

from connect4engine.ai.evaluation import Evaluator
from connect4engine.ai.safety import SafetyOracle
from connect4engine.ai.memo_search import MemoizedSearch
from connect4engine.ai.pvs import DeepeningPVS
from connect4engine.ai.engine import Connect4Engine, Difficulty, EnginePlayer, StrategyDispatcher

__all__ = ['Evaluator', 'SafetyOracle', 'MemoizedSearch', 'DeepeningPVS',
           'Connect4Engine', 'Difficulty', 'EnginePlayer', 'StrategyDispatcher']
