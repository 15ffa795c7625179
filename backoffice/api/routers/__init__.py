from .corporate_action import router as corporate_action_router
