"""
Recommendation engine: turns a player's scores, titles and tier lists into
an ordered list of suggested charts, and records hide/show feedback.

Modules
-------
approachability : ApproachabilityRanker, combines community tier lists into
                  one easiest-first ordering of the catalog.
feedback        : SuppressionIndex + FeedbackRecorder.
strategies      : StrategyContext and the seven strategy coroutines.
engine          : RecommendationEngine + resolve_competitive_level().
reporter        : CSV/JSON writers and the terminal table.
"""
