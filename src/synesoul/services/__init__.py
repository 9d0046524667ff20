"""
SYNESOUL Services Layer

Training, inference, memory, feedback learning and orchestration.
"""
