"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskPriority, TaskStatus)
- task_store.py: in-memory task list with reminder reconciliation hooks
- task_persistence.py: JSON snapshot of the task list
- reminder_scheduler.py: one pending asyncio wake-up per task
- overdue_monitor.py: on-demand overdue summary notification
"""
