"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus) and the lifecycle transition table
- task_store.py: JSON-file storage (one document per task)
- reconciler.py: polling loop that mirrors remote agent session state onto tasks
- task_service.py: command handlers (create / approve / cancel / pull request)
"""
