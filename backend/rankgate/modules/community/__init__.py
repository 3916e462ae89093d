"""Community module: members, rank-gated forums and private chat sessions."""
