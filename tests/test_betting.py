"""Tests for the per-street betting ledger."""
from holdem.game.betting import ActionRequest, ActionType, BettingState, Street


class TestBettingState:
    """Test ledger bookkeeping."""
    
    def test_initial_state(self):
        """Test a fresh ledger."""
        state = BettingState()
        
        assert state.street == Street.PREFLOP
        assert state.current_bet == 0
        assert state.to_act_seat == -1
        assert state.last_aggressor_seat == -1
    
    def test_contrib_defaults_to_zero(self):
        """Test unknown players have contributed nothing."""
        assert BettingState().contrib_of("p1") == 0
    
    def test_post_accumulates_and_raises_current_bet(self):
        """Test posting tracks the highest contribution."""
        state = BettingState()
        state.post("p1", 10)
        state.post("p2", 30)
        state.post("p1", 10)
        
        assert state.contrib_of("p1") == 20
        assert state.contrib_of("p2") == 30
        assert state.current_bet == 30
    
    def test_post_below_current_bet_keeps_it(self):
        """Test a short post does not lower the current bet."""
        state = BettingState()
        state.post("p1", 50)
        state.post("p2", 20)
        
        assert state.current_bet == 50
    
    def test_clear_street(self):
        """Test clearing resets the street but not the street name."""
        state = BettingState()
        state.street = Street.TURN
        state.post("p1", 40)
        state.mark_acted("p1")
        state.last_aggressor_seat = 2
        
        state.clear_street()
        
        assert state.contrib_of("p1") == 0
        assert state.current_bet == 0
        assert state.last_aggressor_seat == -1
        assert not state.has_acted("p1")
        assert state.street == Street.TURN
    
    def test_advance_street_order(self):
        """Test streets advance in order and stop at showdown."""
        state = BettingState()
        seen = [state.advance_street() for _ in range(5)]
        
        assert seen == [
            Street.FLOP,
            Street.TURN,
            Street.RIVER,
            Street.SHOWDOWN,
            Street.SHOWDOWN,
        ]


class TestActionRequest:
    """Test the action value object."""
    
    def test_defaults(self):
        """Test chips default to zero."""
        action = ActionRequest(player_id="p1", type=ActionType.CHECK)
        assert action.chips == 0
    
    def test_from_dict(self):
        """Test parsing a transport payload."""
        action = ActionRequest.from_dict({"player_id": "p1", "type": "raise", "chips": "20"})
        
        assert action == ActionRequest("p1", ActionType.RAISE, 20)
        assert action.to_dict() == {"player_id": "p1", "type": "raise", "chips": 20}
