"""Session ports."""
