"""Reading and writing project documents."""

from .codec import load_project, project_from_dict, project_to_dict, save_project

__all__ = ["load_project", "project_from_dict", "project_to_dict", "save_project"]
