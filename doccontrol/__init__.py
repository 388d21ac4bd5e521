"""doccontrol – document authoring, approval workflow and controlled export."""
