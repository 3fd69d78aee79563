"""
Task sync subsystem.

Components:
- task_models.py: data structures (Task, Attachment, AttachmentCategory)
- session.py: anonymous session bootstrap (best-effort)
- uploader.py: attachment upload -> public URL
- collection.py: CRUD facade + local view (refetch-on-mutation)
- change_feed.py: realtime listener that refreshes the view on any change
"""
