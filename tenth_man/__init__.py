"""
Tenth Man
=========
Protocole de revue contradictoire pour agents de code.
Soumet un changement proposé à 3 rôles critiques (Devil's Advocate,
Architecture Critic, Pragmatist) répartis sur des CLI externes ou des
sous-agents isolés, puis produit un consensus : PROCEED / PROCEED WITH
CHANGES / BLOCK.
"""

__version__ = "1.0.0"
__author__ = "Team7"
