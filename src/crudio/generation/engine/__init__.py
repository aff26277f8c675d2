"""Data generation engine.

Stages: populator, connector, triggers and assignments, sequenced by
pipeline.build_data_model.
"""
